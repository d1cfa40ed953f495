from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from wheely.src import exceptions
from wheely.src.argon2 import checkPassword
from wheely.src.db import FavoriteRoute, Report, Route, RouteTimeByPeriod, User
from wheely.src.enums import ErrorKind, ReportType
from wheely.src.guards import OwnershipGuard
from wheely.src.schemas import (
    FavoriteRouteData,
    ReportData,
    RouteData,
    RouteTimeData,
    UserData,
)
from wheely.src.services import (
    FavoriteRouteService,
    ReportService,
    RouteService,
    RouteTimeService,
    UserService,
)


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------
def test_route_create_trims_and_rejects_duplicates(storage):
    service = RouteService(storage)
    route = service.create(RouteData(name=" Ruta 7 ", origin="Centro", destination="Norte"))
    assert route.id is not None
    assert route.name == "Ruta 7"

    with pytest.raises(exceptions.Conflict) as error:
        service.create(RouteData(name="Ruta 7", origin="A", destination="B"))
    assert error.value.detail == "A route with the name Ruta 7 already exists"


def test_route_partial_update(storage, route):
    service = RouteService(storage)
    updated = service.update(route.id, RouteData(destination="Universidad"))

    assert updated.name == "Ruta 1"
    assert updated.destination == "Universidad"
    assert updated.updated_on is not None


def test_route_update_keeps_own_name(storage, route):
    updated = RouteService(storage).update(route.id, RouteData(name="Ruta 1"))
    assert updated.updated_on is None


def test_route_search(storage, route):
    service = RouteService(storage)
    service.create(RouteData(name="Ruta 2", origin="Centro", destination="Universidad"))

    assert [r.name for r in service.search(destination="univ")] == ["Ruta 2"]
    assert len(service.search(origin="CENTRO")) == 2
    assert service.search(limit=1)[0].name == "Ruta 2"


def test_route_delete_cascades(storage, session, route, user, dayPeriods):
    RouteTimeService(storage).create(
        RouteTimeData(route_id=route.id, period_id=dayPeriods[0].id, average_time=30)
    )
    FavoriteRouteService(storage).create(
        FavoriteRouteData(user_id=user.id, route_id=route.id)
    )

    RouteService(storage).delete(route.id)
    session.expire_all()

    assert session.query(Route).count() == 0
    assert session.query(RouteTimeByPeriod).count() == 0
    assert session.query(FavoriteRoute).count() == 0


# ---------------------------------------------------------------------------
# Route time by period
# ---------------------------------------------------------------------------
@pytest.fixture
def routeTimes(storage, dayPeriods):
    return RouteTimeService(storage)


def test_route_time_unique_pair(routeTimes, route, dayPeriods):
    data = RouteTimeData(route_id=route.id, period_id=dayPeriods[0].id, average_time=30)
    routeTimes.create(data)

    with pytest.raises(exceptions.Conflict) as error:
        routeTimes.create(data)
    assert error.value.kind == ErrorKind.CONFLICT
    assert len(routeTimes.byRoute(route.id)) == 1


def test_route_time_unknown_references(routeTimes, route, dayPeriods, session):
    with pytest.raises(exceptions.UnknownValue) as error:
        routeTimes.create(RouteTimeData(route_id=99, period_id=dayPeriods[0].id, average_time=30))
    assert "route_id" in error.value.detail

    with pytest.raises(exceptions.UnknownValue) as error:
        routeTimes.create(RouteTimeData(route_id=route.id, period_id=99, average_time=30))
    assert "period_id" in error.value.detail
    assert session.query(RouteTimeByPeriod).count() == 0


def test_route_time_update(routeTimes, route, dayPeriods):
    record = routeTimes.create(
        RouteTimeData(route_id=route.id, period_id=dayPeriods[0].id, average_time=30)
    )
    routeTimes.update(record.id, RouteTimeData(average_time=45))

    assert routeTimes.byRouteAndPeriod(route.id, dayPeriods[0].id).average_time == 45


def test_route_time_update_into_taken_pair(routeTimes, route, dayPeriods):
    routeTimes.create(
        RouteTimeData(route_id=route.id, period_id=dayPeriods[0].id, average_time=30)
    )
    record = routeTimes.create(
        RouteTimeData(route_id=route.id, period_id=dayPeriods[1].id, average_time=40)
    )

    with pytest.raises(exceptions.Conflict):
        routeTimes.update(record.id, RouteTimeData(period_id=dayPeriods[0].id))


def test_route_time_upsert(routeTimes, route, dayPeriods):
    data = RouteTimeData(route_id=route.id, period_id=dayPeriods[1].id, average_time=20)
    first = routeTimes.upsert(data)
    second = routeTimes.upsert(data.model_copy(update={"average_time": 25}))

    assert first.id == second.id
    assert second.average_time == 25
    assert len(routeTimes.byPeriod(dayPeriods[1].id)) == 1


def test_route_time_range(routeTimes, route, dayPeriods):
    with pytest.raises(exceptions.InvalidInput):
        routeTimes.create(
            RouteTimeData(route_id=route.id, period_id=dayPeriods[0].id, average_time=301)
        )


def test_storage_constraint_backs_the_guard(storage, session, route, dayPeriods):
    storage.save(RouteTimeByPeriod(route_id=route.id, period_id=dayPeriods[0].id, average_time=10))

    with pytest.raises(IntegrityError) as error:
        storage.save(
            RouteTimeByPeriod(route_id=route.id, period_id=dayPeriods[0].id, average_time=20)
        )
    with pytest.raises(exceptions.UniqueViolation) as handled:
        exceptions.handle(error.value)
    assert handled.value.kind == ErrorKind.CONFLICT
    assert session.query(RouteTimeByPeriod).count() == 1


def test_eta(routeTimes, route, dayPeriods):
    routeTimes.create(
        RouteTimeData(route_id=route.id, period_id=dayPeriods[0].id, average_time=45)
    )

    assert routeTimes.eta(route.id, datetime(2024, 3, 4, 7, 30)) == 45
    # Afternoon has no travel time recorded for the route
    assert routeTimes.eta(route.id, datetime(2024, 3, 4, 15)) is None


def test_eta_without_periods(storage, route):
    assert RouteTimeService(storage).eta(route.id, datetime(2024, 3, 4, 7)) is None


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------
def reportData(route_id: int, **overrides) -> ReportData:
    values = dict(
        route_id=route_id,
        type=ReportType.DELAY,
        title="Late departure",
        body="The 07:30 service left twenty minutes late",
    )
    values.update(overrides)
    return ReportData(**values)


def test_report_create(storage, user, route):
    report = ReportService(storage).create(user.id, reportData(route.id))

    assert report.user_id == user.id
    assert report.created_on is not None


def test_report_unknown_author_persists_nothing(storage, session, route):
    with pytest.raises(exceptions.NotFound):
        ReportService(storage).create(999, reportData(route.id))
    assert session.query(Report).count() == 0


def test_report_unknown_route(storage, user):
    with pytest.raises(exceptions.UnknownValue):
        ReportService(storage).create(user.id, reportData(999))


def test_report_update_by_author(storage, user, route):
    service = ReportService(storage)
    report = service.create(user.id, reportData(route.id))
    createdOn = report.created_on

    updated = service.update(report.id, user.id, ReportData(title="Very late"))
    assert updated.title == "Very late"
    assert updated.body == "The 07:30 service left twenty minutes late"
    assert updated.created_on == createdOn
    assert updated.user_id == user.id


def test_report_update_by_other_user(storage, user, otherUser, route):
    service = ReportService(storage, OwnershipGuard())
    report = service.create(user.id, reportData(route.id))

    with pytest.raises(exceptions.Unauthorized) as error:
        service.update(report.id, otherUser.id, ReportData(title="Hijacked"))
    assert error.value.kind == ErrorKind.UNAUTHORIZED
    assert service.byId(report.id).title == "Late departure"


def test_report_delete(storage, user, otherUser, route):
    service = ReportService(storage, OwnershipGuard())
    report = service.create(user.id, reportData(route.id))

    with pytest.raises(exceptions.NotAuthor):
        service.delete(report.id, otherUser.id)
    service.delete(report.id, user.id)
    assert service.byAuthor(user.id) == []


def test_report_delete_by_override_user(storage, user, otherUser, route):
    service = ReportService(storage, OwnershipGuard(adminOverrideUserId=otherUser.id))
    report = service.create(user.id, reportData(route.id))

    with pytest.raises(exceptions.NotAuthor):
        service.update(report.id, otherUser.id, ReportData(title="Edited"))
    service.delete(report.id, otherUser.id)
    assert service.byRoute(route.id) == []


def test_report_search(storage, user, otherUser, route):
    service = ReportService(storage)
    service.create(user.id, reportData(route.id))
    service.create(otherUser.id, reportData(route.id, type=ReportType.SAFETY))

    assert len(service.search(route_id=route.id)) == 2
    assert [r.user_id for r in service.search(type=ReportType.SAFETY)] == [otherUser.id]


# ---------------------------------------------------------------------------
# Favorite route
# ---------------------------------------------------------------------------
def test_favorite_route(storage, user, route):
    service = FavoriteRouteService(storage)
    data = FavoriteRouteData(user_id=user.id, route_id=route.id)
    service.create(data)

    assert service.exists(user.id, route.id)
    with pytest.raises(exceptions.Conflict) as error:
        service.create(data)
    assert error.value.detail == "The route is already in the favorites"

    service.delete(user.id, route.id)
    assert not service.exists(user.id, route.id)
    with pytest.raises(exceptions.InvalidIdentifier):
        service.delete(user.id, route.id)


def test_favorite_route_unknown_route(storage, user):
    with pytest.raises(exceptions.UnknownValue):
        FavoriteRouteService(storage).create(FavoriteRouteData(user_id=user.id, route_id=5))


def test_favorites_are_per_user(storage, user, otherUser, route):
    service = FavoriteRouteService(storage)
    service.create(FavoriteRouteData(user_id=user.id, route_id=route.id))
    service.create(FavoriteRouteData(user_id=otherUser.id, route_id=route.id))

    assert [f.user_id for f in service.listFor(otherUser.id)] == [otherUser.id]
    assert service.listFor(user.id, route_id=route.id)[0].route_id == route.id


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
def test_register_hashes_password(storage):
    user = UserService(storage).register(
        UserData(name="Eva", email=" eva@wheely.com ", password="Secret#123")
    )

    assert user.email == "eva@wheely.com"
    assert user.password != "Secret#123"
    assert checkPassword("Secret#123", user.password)


def test_register_weak_password_lists_every_rule(storage, session):
    with pytest.raises(exceptions.InvalidPassword) as error:
        UserService(storage).register(
            UserData(name="Eva", email="eva@wheely.com", password="abcdefg1")
        )
    assert len(error.value.errors) == 2
    assert session.query(User).count() == 0


def test_register_duplicate_email(storage, user):
    with pytest.raises(exceptions.Conflict):
        UserService(storage).register(
            UserData(name="Other", email=user.email, password="Secret#123")
        )


def test_user_update(storage, user, otherUser):
    service = UserService(storage)

    with pytest.raises(exceptions.Conflict):
        service.update(user.id, UserData(email=otherUser.email))

    updated = service.update(user.id, UserData(name="Ana María", password="Nuevo#2024"))
    assert updated.name == "Ana María"
    assert updated.email == "ana@wheely.com"
    assert service.authenticate(user.email, "Nuevo#2024").id == user.id


def test_authenticate(storage, user):
    service = UserService(storage)

    assert service.authenticate("ana@wheely.com", "Secret#123").id == user.id
    assert service.authenticate("ana@wheely.com", "wrong") is None
    assert service.authenticate("nobody@wheely.com", "Secret#123") is None
    assert service.authenticate("", "") is None


def test_user_delete_cascades(storage, session, user, route):
    ReportService(storage).create(user.id, reportData(route.id))

    UserService(storage).delete(user.id)
    session.expire_all()
    assert session.query(Report).count() == 0


def test_user_update_with_weak_password_changes_nothing(storage, session, user):
    service = UserService(storage)

    with pytest.raises(exceptions.InvalidPassword):
        service.update(user.id, UserData(name="Hijacked", password="weak"))
    # A later commit on the same session must not carry the rejected values
    RouteService(storage).create(RouteData(name="Ruta 3", origin="A", destination="B"))
    session.expire_all()

    stored = session.get(User, user.id)
    assert stored.name == "Ana"
    assert service.authenticate(user.email, "Secret#123").id == user.id
