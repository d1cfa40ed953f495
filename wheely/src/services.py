"""
Domain services for routes, travel times, reports, favorites and users.

Every write follows the same pipeline and stops at the first failure:

    entity validators -> referential integrity -> uniqueness -> persist

Report mutations additionally pass the ownership guard. Storage is injected
through the constructor, services hold no other state.
"""

from datetime import datetime
from typing import Optional

from wheely.src import exceptions, validators
from wheely.src.argon2 import checkPassword, makePassword
from wheely.src.constants import ADMIN_OVERRIDE_USER_ID
from wheely.src.db import (
    FavoriteRoute,
    Period,
    Report,
    Route,
    RouteTimeByPeriod,
    User,
)
from wheely.src.enums import OrderIn
from wheely.src.functions import mergeWithRecord, updateIfChanged
from wheely.src.guards import OwnershipGuard, ReferenceGuard, UniquenessGuard
from wheely.src.periods import PeriodRegistry
from wheely.src.repository import Storage
from wheely.src.schemas import (
    FavoriteRouteData,
    ReportData,
    RouteData,
    RouteTimeData,
    UserData,
)


def _ordering(column, orderIn: OrderIn):
    return column.asc() if orderIn == OrderIn.ASC else column.desc()


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------
class RouteService:
    def __init__(self, storage: Storage):
        self.storage = storage
        self.uniqueness = UniquenessGuard(storage)

    def byId(self, route_id: int) -> Route:
        route = self.storage.findById(Route, route_id)
        if route is None:
            raise exceptions.InvalidIdentifier()
        return route

    def search(
        self,
        name: Optional[str] = None,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        orderBy: str = Route.id.key,
        orderIn: OrderIn = OrderIn.DESC,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Route]:
        """
        List routes, filtering by case-insensitive substrings of the name,
        origin and destination.
        """
        criteria = []
        if name is not None:
            criteria.append(Route.name.ilike(f"%{name}%"))
        if origin is not None:
            criteria.append(Route.origin.ilike(f"%{origin}%"))
        if destination is not None:
            criteria.append(Route.destination.ilike(f"%{destination}%"))
        return self.storage.findAll(
            Route,
            *criteria,
            orderBy=_ordering(getattr(Route, orderBy), orderIn),
            offset=offset,
            limit=limit,
        )

    def create(self, data: RouteData) -> Route:
        data = validators.routeData(data)
        self.uniqueness.require(
            Route, f"A route with the name {data.name} already exists", name=data.name
        )
        route = Route(name=data.name, origin=data.origin, destination=data.destination)
        return self.storage.save(route)

    def update(self, route_id: int, data: RouteData) -> Route:
        route = self.byId(route_id)
        data = validators.routeData(mergeWithRecord(route, data))
        self.uniqueness.require(
            Route,
            f"A route with the name {data.name} already exists",
            excludeId=route.id,
            name=data.name,
        )
        if updateIfChanged(
            route, data, [Route.name.key, Route.origin.key, Route.destination.key]
        ):
            self.storage.update(route)
        return route

    def delete(self, route_id: int) -> Route:
        route = self.byId(route_id)
        self.storage.delete(route)
        return route


# ---------------------------------------------------------------------------
# Route time by period
# ---------------------------------------------------------------------------
class RouteTimeService:
    def __init__(self, storage: Storage, periods: Optional[PeriodRegistry] = None):
        self.storage = storage
        self.periods = periods or PeriodRegistry(storage)
        self.uniqueness = UniquenessGuard(storage)
        self.references = ReferenceGuard(storage)

    ## Queries
    def byId(self, record_id: int) -> RouteTimeByPeriod:
        record = self.storage.findById(RouteTimeByPeriod, record_id)
        if record is None:
            raise exceptions.InvalidIdentifier()
        return record

    def search(
        self,
        route_id: Optional[int] = None,
        period_id: Optional[int] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[RouteTimeByPeriod]:
        filters = {}
        if route_id is not None:
            filters["route_id"] = validators.identifier(route_id, "route ID")
        if period_id is not None:
            filters["period_id"] = validators.identifier(period_id, "period ID")
        return self.storage.findAll(
            RouteTimeByPeriod, offset=offset, limit=limit, **filters
        )

    def byRoute(self, route_id: int) -> list[RouteTimeByPeriod]:
        return self.search(route_id=route_id)

    def byPeriod(self, period_id: int) -> list[RouteTimeByPeriod]:
        return self.search(period_id=period_id)

    def byRouteAndPeriod(
        self, route_id: int, period_id: int
    ) -> Optional[RouteTimeByPeriod]:
        return self.storage.findOne(
            RouteTimeByPeriod,
            route_id=validators.identifier(route_id, "route ID"),
            period_id=validators.identifier(period_id, "period ID"),
        )

    def eta(self, route_id: int, now: Optional[datetime] = None) -> Optional[int]:
        """
        Estimate the travel time of a route at `now`.

        The period active at `now` (current local time by default) selects
        the average travel time recorded for the route.

        Returns:
            Optional[int]: Average minutes, or None when no period covers
            `now` or the route has no time recorded for that period.
        """
        route_id = validators.identifier(route_id, "route ID")
        period = self.periods.current(now)
        if period is None:
            return None
        record = self.storage.findOne(
            RouteTimeByPeriod, route_id=route_id, period_id=period.id
        )
        return record.average_time if record is not None else None

    ## Writes
    def _checkReferences(self, data: RouteTimeData):
        self.references.require(Route, data.route_id, RouteTimeByPeriod.route_id)
        self.references.require(Period, data.period_id, RouteTimeByPeriod.period_id)

    def _checkUnique(self, data: RouteTimeData, excludeId: Optional[int] = None):
        self.uniqueness.require(
            RouteTimeByPeriod,
            "A travel time already exists for this route and period",
            excludeId=excludeId,
            route_id=data.route_id,
            period_id=data.period_id,
        )

    def create(self, data: RouteTimeData) -> RouteTimeByPeriod:
        data = validators.routeTimeData(data)
        self._checkReferences(data)
        self._checkUnique(data)
        record = RouteTimeByPeriod(
            route_id=data.route_id,
            period_id=data.period_id,
            average_time=data.average_time,
        )
        return self.storage.save(record)

    def update(self, record_id: int, data: RouteTimeData) -> RouteTimeByPeriod:
        record = self.byId(record_id)
        data = validators.routeTimeData(mergeWithRecord(record, data))
        self._checkReferences(data)
        self._checkUnique(data, excludeId=record.id)
        if updateIfChanged(
            record,
            data,
            [
                RouteTimeByPeriod.route_id.key,
                RouteTimeByPeriod.period_id.key,
                RouteTimeByPeriod.average_time.key,
            ],
        ):
            self.storage.update(record)
        return record

    def upsert(self, data: RouteTimeData) -> RouteTimeByPeriod:
        """Set the average time of a (route, period) pair, creating the record if needed."""
        data = validators.routeTimeData(data)
        self._checkReferences(data)
        record = self.storage.findOne(
            RouteTimeByPeriod, route_id=data.route_id, period_id=data.period_id
        )
        if record is None:
            record = RouteTimeByPeriod(
                route_id=data.route_id,
                period_id=data.period_id,
                average_time=data.average_time,
            )
            return self.storage.save(record)
        if record.average_time != data.average_time:
            record.average_time = data.average_time
            self.storage.update(record)
        return record

    def delete(self, record_id: int) -> RouteTimeByPeriod:
        record = self.byId(record_id)
        self.storage.delete(record)
        return record


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------
class ReportService:
    def __init__(
        self, storage: Storage, ownership: Optional[OwnershipGuard] = None
    ):
        self.storage = storage
        self.references = ReferenceGuard(storage)
        self.ownership = ownership or OwnershipGuard(ADMIN_OVERRIDE_USER_ID)

    def byId(self, report_id: int) -> Report:
        report = self.storage.findById(Report, report_id)
        if report is None:
            raise exceptions.InvalidIdentifier()
        return report

    def search(
        self,
        route_id: Optional[int] = None,
        user_id: Optional[int] = None,
        type: Optional[int] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Report]:
        """List reports, newest first."""
        filters = {}
        if route_id is not None:
            filters["route_id"] = route_id
        if user_id is not None:
            filters["user_id"] = user_id
        if type is not None:
            filters["type"] = type
        return self.storage.findAll(
            Report,
            orderBy=Report.created_on.desc(),
            offset=offset,
            limit=limit,
            **filters,
        )

    def byRoute(self, route_id: int) -> list[Report]:
        return self.search(route_id=validators.identifier(route_id, "route ID"))

    def byAuthor(self, user_id: int) -> list[Report]:
        return self.search(user_id=validators.identifier(user_id, "user ID"))

    def create(self, user_id: int, data: ReportData) -> Report:
        """
        File a report as `user_id`.

        Raises:
            exceptions.InvalidInput: A field rule is violated.
            exceptions.UnknownValue: The author or the route does not exist.
        """
        data = validators.reportData(data)
        self.references.require(User, user_id, Report.user_id)
        self.references.require(Route, data.route_id, Report.route_id)
        report = Report(
            route_id=data.route_id,
            user_id=user_id,
            type=data.type,
            title=data.title,
            body=data.body,
        )
        return self.storage.save(report)

    def update(self, report_id: int, actingUserId: int, data: ReportData) -> Report:
        """Apply a partial update. Only the author may update, the author never changes."""
        report = self.byId(report_id)
        self.ownership.requireUpdate(report, actingUserId)
        data = validators.reportData(mergeWithRecord(report, data))
        self.references.require(Route, data.route_id, Report.route_id)
        if updateIfChanged(
            report,
            data,
            [Report.route_id.key, Report.type.key, Report.title.key, Report.body.key],
        ):
            self.storage.update(report)
        return report

    def delete(self, report_id: int, actingUserId: int) -> Report:
        report = self.byId(report_id)
        self.ownership.requireDelete(report, actingUserId)
        self.storage.delete(report)
        return report


# ---------------------------------------------------------------------------
# Favorite route
# ---------------------------------------------------------------------------
class FavoriteRouteService:
    def __init__(self, storage: Storage):
        self.storage = storage
        self.uniqueness = UniquenessGuard(storage)
        self.references = ReferenceGuard(storage)

    def listFor(
        self,
        user_id: int,
        route_id: Optional[int] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[FavoriteRoute]:
        """List the favorites of a user, most recent first."""
        filters = {"user_id": validators.identifier(user_id, "user ID")}
        if route_id is not None:
            filters["route_id"] = validators.identifier(route_id, "route ID")
        return self.storage.findAll(
            FavoriteRoute,
            orderBy=FavoriteRoute.created_on.desc(),
            offset=offset,
            limit=limit,
            **filters,
        )

    def exists(self, user_id: int, route_id: int) -> bool:
        data = validators.favoriteRouteData(
            FavoriteRouteData(user_id=user_id, route_id=route_id)
        )
        return self.storage.exists(
            FavoriteRoute, user_id=data.user_id, route_id=data.route_id
        )

    def create(self, data: FavoriteRouteData) -> FavoriteRoute:
        data = validators.favoriteRouteData(data)
        self.references.require(User, data.user_id, FavoriteRoute.user_id)
        self.references.require(Route, data.route_id, FavoriteRoute.route_id)
        self.uniqueness.require(
            FavoriteRoute,
            "The route is already in the favorites",
            user_id=data.user_id,
            route_id=data.route_id,
        )
        favorite = FavoriteRoute(user_id=data.user_id, route_id=data.route_id)
        return self.storage.save(favorite)

    def delete(self, user_id: int, route_id: int) -> FavoriteRoute:
        data = validators.favoriteRouteData(
            FavoriteRouteData(user_id=user_id, route_id=route_id)
        )
        favorite = self.storage.findOne(
            FavoriteRoute, user_id=data.user_id, route_id=data.route_id
        )
        if favorite is None:
            raise exceptions.InvalidIdentifier()
        self.storage.delete(favorite)
        return favorite


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class UserService:
    def __init__(self, storage: Storage):
        self.storage = storage
        self.uniqueness = UniquenessGuard(storage)

    def byId(self, user_id: int) -> User:
        user = self.storage.findById(User, user_id)
        if user is None:
            raise exceptions.InvalidIdentifier()
        return user

    def byEmail(self, email: str) -> Optional[User]:
        return self.storage.findOne(User, email=validators.email(email))

    def _requireUniqueEmail(self, email: str, excludeId: Optional[int] = None):
        self.uniqueness.require(
            User,
            f"An account with the email {email} already exists",
            excludeId=excludeId,
            email=email,
        )

    def register(self, data: UserData) -> User:
        """
        Create an account.

        The profile is validated first, then the password policy (reporting
        every unmet rule), then the email uniqueness. Only the Argon2 hash
        of the password is stored.
        """
        data = validators.userData(data)
        validators.passwordPolicy(data.password)
        self._requireUniqueEmail(data.email)
        user = User(
            name=data.name, email=data.email, password=makePassword(data.password)
        )
        return self.storage.save(user)

    def update(self, user_id: int, data: UserData) -> User:
        """Update the profile, the password is replaced only when a new one is given."""
        user = self.byId(user_id)
        profile = validators.userData(
            UserData(
                name=data.name if data.name is not None else user.name,
                email=data.email if data.email is not None else user.email,
            )
        )
        self._requireUniqueEmail(profile.email, excludeId=user.id)
        password = None
        if data.password is not None:
            password = makePassword(validators.passwordPolicy(data.password))

        # Apply only once every check passed
        changed = updateIfChanged(user, profile, [User.name.key, User.email.key])
        if password is not None:
            user.password = password
            changed = True
        if changed:
            self.storage.update(user)
        return user

    def delete(self, user_id: int) -> User:
        user = self.byId(user_id)
        self.storage.delete(user)
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user owning `email` when `password` matches, None otherwise."""
        if not email or not password:
            return None
        user = self.storage.findOne(User, email=email.strip())
        if user is None or not checkPassword(password, user.password):
            return None
        return user
