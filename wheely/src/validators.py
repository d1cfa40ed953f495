"""
Validation checks for Wheely API.

This module centralizes guard logic such as:
- Token validation
- Field level checks (required text, lengths, ranges, identifiers)
- Entity validators returning a normalized copy of the candidate values
- Password policy

Entity validators are fail-fast: the first violated rule is raised as
`exceptions.InvalidInput`. The password policy accumulates every unmet rule.
"""

import re
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import Session

from wheely.src import exceptions
from wheely.src.db import UserToken
from wheely.src.enums import ReportType
from wheely.src.schemas import (
    FavoriteRouteData,
    PeriodData,
    ReportData,
    RouteData,
    RouteTimeData,
    UserData,
)
from wheely.src.constants import (
    MAX_AVERAGE_TIME,
    MAX_EMAIL_LENGTH,
    MAX_PERIOD_DESCRIPTION_LENGTH,
    MAX_PERIOD_NAME_LENGTH,
    MAX_REPORT_TITLE_LENGTH,
    MAX_ROUTE_NAME_LENGTH,
    MAX_ROUTE_PLACE_LENGTH,
    MAX_USER_NAME_LENGTH,
    MIN_AVERAGE_TIME,
    MIN_PASSWORD_LENGTH,
    PASSWORD_SYMBOLS,
    REGEX_EMAIL,
)


# ---------------------------------------------------------------------------
# Token validation
# ---------------------------------------------------------------------------
def userToken(access_token: str, session: Session) -> UserToken:
    """
    Validate a user access token.

    Args:
        access_token (str): The bearer token string provided by the client.
        session (Session): Active SQLAlchemy session for DB lookup.

    Returns:
        UserToken: The valid token object from the database.

    Raises:
        exceptions.InvalidToken: If the token is not found or has expired.
    """
    current_time = datetime.now(timezone.utc)

    token = (
        session.query(UserToken)
        .filter(
            UserToken.access_token == access_token,
            UserToken.expires_at > current_time,
        )
        .first()
    )

    if token is None:
        raise exceptions.InvalidToken()

    return token


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------
def requiredText(
    value: Optional[str], field: str, maxLength: Optional[int] = None
) -> str:
    """
    Check that a text value is present, non-blank and within `maxLength`
    once trimmed.

    Returns:
        str: The trimmed value.

    Raises:
        exceptions.InvalidInput: Naming the field and the violated rule.
    """
    if value is None or not value.strip():
        raise exceptions.InvalidInput(f"The {field} is required")
    value = value.strip()
    if maxLength is not None and len(value) > maxLength:
        raise exceptions.InvalidInput(
            f"The {field} must not exceed {maxLength} characters"
        )
    return value


def optionalText(value: Optional[str], field: str, maxLength: int) -> Optional[str]:
    """Same as `requiredText` but a missing or blank value normalizes to None."""
    if value is None or not value.strip():
        return None
    return requiredText(value, field, maxLength)


def identifier(value: Optional[int], field: str) -> int:
    if value is None or value <= 0:
        raise exceptions.InvalidInput(f"The {field} must be greater than 0")
    return value


def numberInRange(value: Optional[int], field: str, minimum: int, maximum: int) -> int:
    if value is None:
        raise exceptions.InvalidInput(f"The {field} is required")
    if not minimum <= value <= maximum:
        raise exceptions.InvalidInput(
            f"The {field} must be between {minimum} and {maximum}"
        )
    return value


def email(value: Optional[str]) -> str:
    value = requiredText(value, "email", MAX_EMAIL_LENGTH)
    if re.match(REGEX_EMAIL, value) is None:
        raise exceptions.InvalidInput("The email format is invalid")
    return value


# ---------------------------------------------------------------------------
# Entity validators
# ---------------------------------------------------------------------------
def routeData(data: RouteData) -> RouteData:
    return RouteData(
        name=requiredText(data.name, "route name", MAX_ROUTE_NAME_LENGTH),
        origin=requiredText(data.origin, "origin", MAX_ROUTE_PLACE_LENGTH),
        destination=requiredText(
            data.destination, "destination", MAX_ROUTE_PLACE_LENGTH
        ),
    )


def periodData(data: PeriodData) -> PeriodData:
    """
    Validate and normalize a period.

    Rules, in order:
        - name present, at most 20 characters
        - start and end times present
        - start and end times differ, a zero-length period covers nothing
        - description at most 100 characters when given
    """
    name = requiredText(data.name, "period name", MAX_PERIOD_NAME_LENGTH)
    if data.start_time is None:
        raise exceptions.InvalidInput("The start time is required")
    if data.end_time is None:
        raise exceptions.InvalidInput("The end time is required")
    if data.start_time == data.end_time:
        raise exceptions.InvalidInput("The start time and end time must differ")
    return PeriodData(
        name=name,
        start_time=data.start_time,
        end_time=data.end_time,
        description=optionalText(
            data.description, "description", MAX_PERIOD_DESCRIPTION_LENGTH
        ),
    )


def routeTimeData(data: RouteTimeData) -> RouteTimeData:
    return RouteTimeData(
        route_id=identifier(data.route_id, "route ID"),
        period_id=identifier(data.period_id, "period ID"),
        average_time=numberInRange(
            data.average_time, "average time", MIN_AVERAGE_TIME, MAX_AVERAGE_TIME
        ),
    )


def reportData(data: ReportData) -> ReportData:
    return ReportData(
        route_id=identifier(data.route_id, "route ID"),
        type=numberInRange(
            data.type, "report type", min(ReportType).value, max(ReportType).value
        ),
        title=requiredText(data.title, "title", MAX_REPORT_TITLE_LENGTH),
        body=requiredText(data.body, "body"),
    )


def favoriteRouteData(data: FavoriteRouteData) -> FavoriteRouteData:
    return FavoriteRouteData(
        user_id=identifier(data.user_id, "user ID"),
        route_id=identifier(data.route_id, "route ID"),
    )


def userData(data: UserData) -> UserData:
    """
    Validate the profile fields of a user. The password, when present, is
    passed through untouched and checked separately by `passwordPolicy`.
    """
    return UserData(
        name=requiredText(data.name, "name", MAX_USER_NAME_LENGTH),
        email=email(data.email),
        password=data.password,
    )


# ---------------------------------------------------------------------------
# Password policy
# ---------------------------------------------------------------------------
def passwordErrors(password: Optional[str]) -> list[str]:
    """
    List every password rule the given password does not meet.

    Rules:
        - at least 8 characters
        - at least one uppercase letter
        - at least one lowercase letter
        - at least one digit
        - at least one symbol from `#%$"/!?¿¡\\`

    Returns:
        list[str]: Messages of the unmet rules, empty for a valid password.

    Example:
        >>> passwordErrors("abcdefg1")
        ['Must contain at least 1 uppercase letter', 'Must contain at least 1 symbol']
    """
    if password is None:
        return ["The password is required"]

    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Must have at least {MIN_PASSWORD_LENGTH} characters")
    if not any(c.isupper() for c in password):
        errors.append("Must contain at least 1 uppercase letter")
    if not any(c.islower() for c in password):
        errors.append("Must contain at least 1 lowercase letter")
    if not any(c.isdigit() for c in password):
        errors.append("Must contain at least 1 digit")
    if not any(c in PASSWORD_SYMBOLS for c in password):
        errors.append("Must contain at least 1 symbol")
    return errors


def isValidPassword(password: Optional[str]) -> bool:
    return not passwordErrors(password)


def passwordPolicy(password: Optional[str]) -> str:
    """
    Raise `exceptions.InvalidPassword` carrying every unmet rule,
    otherwise return the password unchanged.
    """
    errors = passwordErrors(password)
    if errors:
        raise exceptions.InvalidPassword(errors)
    return password
