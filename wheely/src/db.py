from secrets import token_hex
from sqlalchemy import (
    TEXT,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
    create_engine,
    func,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from wheely.src.constants import (
    PSQL_DB_DRIVER,
    PSQL_DB_HOST,
    PSQL_DB_PASSWORD,
    PSQL_DB_NAME,
    PSQL_DB_PORT,
    PSQL_DB_USERNAME,
    MAX_EMAIL_LENGTH,
    MAX_PERIOD_DESCRIPTION_LENGTH,
    MAX_PERIOD_NAME_LENGTH,
    MAX_REPORT_TITLE_LENGTH,
    MAX_ROUTE_NAME_LENGTH,
    MAX_ROUTE_PLACE_LENGTH,
    MAX_USER_NAME_LENGTH,
)
from wheely.src.enums import PlatformType


# Global DBMS variables
dbURL = f"{PSQL_DB_DRIVER}://{PSQL_DB_USERNAME}:{PSQL_DB_PASSWORD}@{PSQL_DB_HOST}:{PSQL_DB_PORT}/{PSQL_DB_NAME}"
engine = create_engine(url=dbURL, echo=False)
sessionMaker = sessionmaker(bind=engine, expire_on_commit=False)
ORMbase = declarative_base()


# ----------------------------------- Account DB Models ---------------------------------------#
class User(ORMbase):
    """
    Represents a registered user of the platform.

    Users file reports about routes, keep a list of favorite routes and
    authenticate with their email address.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the user.

        name (String(100)):
            Display name of the user.
            Must not be null or blank.

        email (String(256)):
            Email address used for login.
            Must match the email pattern, not null and unique.
            Stored trimmed.

        password (TEXT):
            Hashed password used for authentication.
            Plaintext should never be stored here. Argon2 is used for secure hashing.
            The plaintext must satisfy the password policy before hashing.

        updated_on (DateTime):
            Timestamp automatically updated whenever the user record is modified.

        created_on (DateTime):
            Timestamp indicating when the user was registered.
    """

    __tablename__ = "user_account"

    id = Column(Integer, primary_key=True)
    name = Column(String(MAX_USER_NAME_LENGTH), nullable=False)
    email = Column(String(MAX_EMAIL_LENGTH), nullable=False, unique=True)
    password = Column(TEXT, nullable=False)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class UserToken(ORMbase):
    """
    Represents an authentication token issued to a user after login.

    Columns:
        id (Integer):
            Primary key. Unique identifier for this token record.

        user_id (Integer):
            Foreign key referencing `user_account.id`.
            Cascades on delete, if the user is removed related tokens are deleted.

        access_token (String):
            Unique, securely generated 64-character hexadecimal access token.

        expires_in (Integer):
            Token validity in seconds.

        expires_at (DateTime):
            Date and time after which the token becomes invalid.

        platform_type (Integer):
            Enum value indicating the client platform type.
            Defaults to `PlatformType.OTHER`.

        client_details (TEXT):
            Optional description of the client device or environment.

        updated_on (DateTime):
            Timestamp automatically updated whenever the token record is modified.

        created_on (DateTime):
            Timestamp indicating when this token was created.
    """

    __tablename__ = "user_token"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    access_token = Column(
        String(64), unique=True, nullable=False, default=lambda: token_hex(32)
    )
    expires_in = Column(Integer, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    # Device related details
    platform_type = Column(Integer, default=PlatformType.OTHER)
    client_details = Column(TEXT)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


# ----------------------------------- Transit DB Models ---------------------------------------#
class Route(ORMbase):
    """
    Represents a public transit route.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the route.

        name (String(100)):
            Name of the route, ex:- Ruta 1 Centro.
            Must be non-null, non-blank and unique.

        origin (String(100)):
            Label of the place where the route starts.
            Must be non-null and non-blank.

        destination (String(100)):
            Label of the place where the route ends.
            Must be non-null and non-blank.

        updated_on (DateTime):
            Timestamp automatically updated when the route record is modified.

        created_on (DateTime):
            Timestamp indicating when the route was initially created.
    """

    __tablename__ = "route"

    id = Column(Integer, primary_key=True)
    name = Column(String(MAX_ROUTE_NAME_LENGTH), nullable=False, unique=True)
    origin = Column(String(MAX_ROUTE_PLACE_LENGTH), nullable=False)
    destination = Column(String(MAX_ROUTE_PLACE_LENGTH), nullable=False)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class Period(ORMbase):
    """
    Represents a named time-of-day interval used to bucket travel times.

    The interval is half-open, `[start_time, end_time)`. When `end_time` is
    earlier than `start_time` the period crosses midnight and covers
    `[start_time, 24:00) + [00:00, end_time)`.
    No two periods may overlap, this is checked by the period registry
    before every write.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the period.

        name (String(20)):
            Name of the period, ex:- Morning.
            Must be non-null, non-blank and unique.

        start_time (Time):
            Time of day at which the period begins (inclusive).

        end_time (Time):
            Time of day at which the period ends (exclusive).
            Must differ from `start_time`.

        description (String(100)):
            Optional free text describing the period.

        updated_on (DateTime):
            Timestamp automatically updated when the period record is modified.

        created_on (DateTime):
            Timestamp indicating when the period was initially created.
    """

    __tablename__ = "period"

    id = Column(Integer, primary_key=True)
    name = Column(String(MAX_PERIOD_NAME_LENGTH), nullable=False, unique=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    description = Column(String(MAX_PERIOD_DESCRIPTION_LENGTH))
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class RouteTimeByPeriod(ORMbase):
    """
    Represents the average travel time of a route during a period.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the record.

        route_id (Integer):
            Foreign key referencing the route.
            Deletion of the route cascades to its travel times.

        period_id (Integer):
            Foreign key referencing the period.
            Deletion of the period cascades to its travel times.

        average_time (Integer):
            Average travel duration in minutes, within 1 to 300.

        updated_on (DateTime):
            Timestamp automatically updated when the record is modified.

        created_on (DateTime):
            Timestamp indicating when the record was initially created.

    Constraints:
        At most one record per (route_id, period_id).
    """

    __tablename__ = "route_time_by_period"
    __table_args__ = (UniqueConstraint("route_id", "period_id"),)

    id = Column(Integer, primary_key=True)
    route_id = Column(
        Integer,
        ForeignKey("route.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period_id = Column(
        Integer,
        ForeignKey("period.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    average_time = Column(Integer, nullable=False)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class Report(ORMbase):
    """
    Represents a report filed by a user about a route.

    Only the author can modify the report. The creation timestamp is
    assigned by the server and never changes.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the report.

        route_id (Integer):
            Foreign key referencing the reported route.

        user_id (Integer):
            Foreign key referencing the author of the report.
            Cannot be changed after creation.

        type (Integer):
            Report category, see `ReportType` (1 to 5).

        title (String(100)):
            Short summary of the report. Non-blank.

        body (TEXT):
            Free text description. Non-blank.

        updated_on (DateTime):
            Timestamp automatically updated when the report is modified.

        created_on (DateTime):
            Timestamp indicating when the report was filed.
    """

    __tablename__ = "report"

    id = Column(Integer, primary_key=True)
    route_id = Column(
        Integer,
        ForeignKey("route.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(Integer, nullable=False)
    title = Column(String(MAX_REPORT_TITLE_LENGTH), nullable=False)
    body = Column(TEXT, nullable=False)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class FavoriteRoute(ORMbase):
    """
    Represents a route bookmarked by a user.

    Columns:
        id (Integer):
            Primary key.

        user_id (Integer):
            Foreign key referencing the user.

        route_id (Integer):
            Foreign key referencing the route.

        created_on (DateTime):
            Timestamp indicating when the route was bookmarked.

    Constraints:
        At most one record per (user_id, route_id).
    """

    __tablename__ = "favorite_route"
    __table_args__ = (UniqueConstraint("user_id", "route_id"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    route_id = Column(
        Integer,
        ForeignKey("route.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Metadata
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())
