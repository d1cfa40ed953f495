from datetime import time

import pytest

from wheely.src import exceptions, validators
from wheely.src.enums import ErrorKind
from wheely.src.schemas import (
    PeriodData,
    ReportData,
    RouteData,
    RouteTimeData,
    UserData,
)


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------
def test_required_text_trims():
    assert validators.requiredText("  Ruta 1 ", "route name", 10) == "Ruta 1"


@pytest.mark.parametrize("value", [None, "", "   "])
def test_required_text_rejects_blank(value):
    with pytest.raises(exceptions.InvalidInput) as error:
        validators.requiredText(value, "route name")
    assert error.value.detail == "The route name is required"
    assert error.value.kind == ErrorKind.INVALID_INPUT


def test_required_text_rejects_long_values():
    with pytest.raises(exceptions.InvalidInput) as error:
        validators.requiredText("x" * 21, "period name", 20)
    assert error.value.detail == "The period name must not exceed 20 characters"


def test_optional_text_normalizes_blank_to_none():
    assert validators.optionalText("  ", "description", 100) is None
    assert validators.optionalText(" rush ", "description", 100) == "rush"


@pytest.mark.parametrize("value", [None, 0, -3])
def test_identifier(value):
    with pytest.raises(exceptions.InvalidInput):
        validators.identifier(value, "route ID")


@pytest.mark.parametrize(
    "value, valid",
    [
        ("ana@wheely.com", True),
        (" ana.maria+bus@mail.example.mx ", True),
        ("ana@wheely", False),
        ("ana.wheely.com", False),
        ("ana@wheely.c", False),
    ],
)
def test_email(value, valid):
    if valid:
        assert validators.email(value) == value.strip()
    else:
        with pytest.raises(exceptions.InvalidInput):
            validators.email(value)


# ---------------------------------------------------------------------------
# Entity validators
# ---------------------------------------------------------------------------
def test_route_data_reports_first_missing_field():
    with pytest.raises(exceptions.InvalidInput) as error:
        validators.routeData(RouteData(name="Ruta 1", origin=" "))
    assert error.value.detail == "The origin is required"


def test_period_data_rejects_equal_times():
    data = PeriodData(name="Noon", start_time=time(12), end_time=time(12))
    with pytest.raises(exceptions.InvalidInput) as error:
        validators.periodData(data)
    assert error.value.detail == "The start time and end time must differ"


def test_period_data_accepts_wraparound():
    data = validators.periodData(
        PeriodData(name=" Night ", start_time=time(22), end_time=time(2))
    )
    assert data.name == "Night"
    assert data.description is None


def test_period_name_limit():
    data = PeriodData(name="x" * 21, start_time=time(1), end_time=time(2))
    with pytest.raises(exceptions.InvalidInput):
        validators.periodData(data)


@pytest.mark.parametrize("averageTime, valid", [(0, False), (1, True), (300, True), (301, False)])
def test_route_time_range(averageTime, valid):
    data = RouteTimeData(route_id=1, period_id=1, average_time=averageTime)
    if valid:
        assert validators.routeTimeData(data).average_time == averageTime
    else:
        with pytest.raises(exceptions.InvalidInput) as error:
            validators.routeTimeData(data)
        assert error.value.detail == "The average time must be between 1 and 300"


@pytest.mark.parametrize("reportType", [0, 6])
def test_report_type_range(reportType):
    data = ReportData(route_id=1, type=reportType, title="Late", body="Very late")
    with pytest.raises(exceptions.InvalidInput):
        validators.reportData(data)


def test_report_body_required():
    data = ReportData(route_id=1, type=1, title="Late", body="  ")
    with pytest.raises(exceptions.InvalidInput) as error:
        validators.reportData(data)
    assert error.value.detail == "The body is required"


def test_user_data_keeps_password_untouched():
    data = validators.userData(UserData(name=" Ana ", email="ana@wheely.com", password=" x "))
    assert data.name == "Ana"
    assert data.password == " x "


# ---------------------------------------------------------------------------
# Password policy
# ---------------------------------------------------------------------------
def test_password_errors_are_accumulated():
    errors = validators.passwordErrors("abcdefg1")
    assert errors == [
        "Must contain at least 1 uppercase letter",
        "Must contain at least 1 symbol",
    ]


def test_password_errors_every_rule():
    assert len(validators.passwordErrors("")) == 5
    assert validators.passwordErrors(None) == ["The password is required"]


@pytest.mark.parametrize("password", ["Secret#123", "Año¿Dónde1", 'Quote"Me9'])
def test_valid_passwords(password):
    assert validators.isValidPassword(password)
    assert validators.passwordPolicy(password) == password


def test_password_policy_raises_with_all_errors():
    with pytest.raises(exceptions.InvalidPassword) as error:
        validators.passwordPolicy("short")
    assert error.value.status_code == 422
    assert len(error.value.errors) == 4
    assert "Must have at least 8 characters" in error.value.detail
