import argparse
from datetime import time
from http import HTTPStatus
from os import environ
from requests import get, post, put

from wheely.src.repository import Storage
from wheely.src.periods import PeriodRegistry
from wheely.src.services import UserService
from wheely.src.schemas import PeriodData, UserData
from wheely.src.urls import (
    URL_USER_ACCOUNT,
    URL_USER_TOKEN,
    URL_ROUTE,
    URL_ROUTE_TIME,
    URL_PERIOD,
    URL_REPORT,
)
from wheely.src.db import sessionMaker, engine, ORMbase

ADMIN_EMAIL = environ.get("WHEELY_ADMIN_EMAIL", "admin@wheely.com")
ADMIN_PASSWORD = environ.get("WHEELY_ADMIN_PASSWORD", "Wheely#2024")

DEFAULT_PERIODS = [
    PeriodData(
        name="Morning",
        start_time=time(6),
        end_time=time(12),
        description="Morning rush, schools and offices",
    ),
    PeriodData(
        name="Afternoon",
        start_time=time(12),
        end_time=time(18),
        description="Midday and afternoon traffic",
    ),
    PeriodData(
        name="Night",
        start_time=time(18),
        end_time=time(6),
        description="Evening return and night service",
    ),
]


# ----------------------------------- Project Setup -------------------------------------------#
def removeTables():
    ORMbase.metadata.drop_all(engine)
    print("* All tables deleted")


def createTables():
    ORMbase.metadata.create_all(engine)
    print("* All tables created")


def initDB(session=None):
    """Register the default periods, covering the whole day, and the administrator account."""
    ownSession = session is None
    if ownSession:
        session = sessionMaker()
    try:
        storage = Storage(session)
        registry = PeriodRegistry(storage)
        for period in DEFAULT_PERIODS:
            registry.create(period)
        print("* Default periods created")

        admin = UserService(storage).register(
            UserData(name="Wheely admin", email=ADMIN_EMAIL, password=ADMIN_PASSWORD)
        )
        print(f"* Admin account created with ID {admin.id}")
        print("* Initialization completed")
    finally:
        if ownSession:
            session.close()


def POST(URL: str, header: dict = {}, status_code: int = HTTPStatus.CREATED, **kwargs):
    response = post(URL, headers=header, **kwargs)
    assert response.status_code == status_code, response.text
    return response


def testDB():
    # Base URLs
    BASE_URL = "http://127.0.0.1:8080/user"
    PUBLIC_URL = "http://127.0.0.1:8080/public"

    # Create admin token
    credentials = {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    response = POST((BASE_URL + URL_USER_TOKEN), data=credentials)
    print("* Created token for admin")
    accessToken = {"Authorization": f"Bearer {response.json()['access_token']}"}

    # Create a rider account
    riderData = {
        "name": "Test rider",
        "email": "rider@wheely.com",
        "password": "Rider#2024",
    }
    POST(PUBLIC_URL + URL_USER_ACCOUNT, data=riderData)
    print("* Created rider account")

    # Create Routes
    route1Data = {"name": "Ruta 1", "origin": "Centro", "destination": "Terminal Norte"}
    route2Data = {"name": "Ruta 2", "origin": "Centro", "destination": "Universidad"}
    route1 = POST((BASE_URL + URL_ROUTE), header=accessToken, data=route1Data)
    route2 = POST((BASE_URL + URL_ROUTE), header=accessToken, data=route2Data)
    print("* Created routes")

    # Register the travel times of every route in every period
    periods = get(PUBLIC_URL + URL_PERIOD).json()
    averageTimes = {"Morning": 45, "Afternoon": 35, "Night": 25}
    for route in (route1, route2):
        for period in periods:
            response = put(
                BASE_URL + URL_ROUTE_TIME,
                headers=accessToken,
                data={
                    "route_id": route.json()["id"],
                    "period_id": period["id"],
                    "average_time": averageTimes.get(period["name"], 30),
                },
            )
            assert response.status_code == HTTPStatus.OK, response.text
    print("* Created route times")

    # Create Report
    reportData = {
        "route_id": route1.json()["id"],
        "type": 1,
        "title": "Late departure",
        "body": "The 07:30 service left twenty minutes late",
    }
    POST((BASE_URL + URL_REPORT), header=accessToken, data=reportData)
    print("* Created report")


# Setup database
if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("-rm", action="store_true", help="remove tables")
    parser.add_argument("-cr", action="store_true", help="create tables")
    parser.add_argument("-init", action="store_true", help="initialize DB")
    parser.add_argument("-test", action="store_true", help="add test data")
    args = parser.parse_args()

    if args.rm:
        removeTables()
    if args.cr:
        createTables()
    if args.init:
        initDB()
    if args.test:
        testDB()
