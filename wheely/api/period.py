from datetime import datetime, time
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status, Form
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from wheely.api.bearer import bearer_user
from wheely.src.db import Period, sessionMaker
from wheely.src import exceptions, validators, getters
from wheely.src.loggers import logEvent
from wheely.src.periods import PeriodRegistry, currentPeriod
from wheely.src.redis import acquireLock, releaseLock
from wheely.src.repository import Storage
from wheely.src.schemas import PeriodData
from wheely.src.functions import makeExceptionResponses, promoteToParent
from wheely.src.urls import URL_CURRENT_PERIOD, URL_PERIOD

route_user = APIRouter()
route_public = APIRouter()


## Output Schema
class PeriodSchema(BaseModel):
    id: int
    name: str
    start_time: time
    end_time: time
    description: Optional[str]
    updated_on: Optional[datetime]
    created_on: datetime


## Input Forms
class CreateForm(BaseModel):
    name: str = Field(Form(max_length=4096))
    start_time: time = Field(Form())
    end_time: time = Field(Form())
    description: str | None = Field(Form(max_length=4096, default=None))


class UpdateForm(BaseModel):
    id: int = Field(Form())
    name: str | None = Field(Form(max_length=4096, default=None))
    start_time: time | None = Field(Form(default=None))
    end_time: time | None = Field(Form(default=None))
    description: str | None = Field(Form(max_length=4096, default=None))


class DeleteForm(BaseModel):
    id: int = Field(Form())


## Query Parameters
class QueryParams(BaseModel):
    name: str | None = Field(Query(default=None, description="Exact period name"))


class CurrentQueryParams(BaseModel):
    time_of_day: time | None = Field(
        Query(default=None, description="Defaults to the current local time")
    )


## API endpoints [User]
@route_user.post(
    URL_PERIOD,
    tags=["Period"],
    response_model=PeriodSchema,
    status_code=status.HTTP_201_CREATED,
    responses=makeExceptionResponses(
        [
            exceptions.InvalidToken,
            exceptions.InvalidInput,
            exceptions.Conflict,
            exceptions.OverlappingPeriod,
            exceptions.LockAcquireTimeout,
        ]
    ),
    description="""
    Register a new period, the half-open interval [start_time, end_time) of the day.
    A period whose end_time is earlier than its start_time crosses midnight.
    The name must be unique and the interval must not overlap any other period,
    periods that only touch at an endpoint do not overlap.
    Registrations are serialized with a lock on the period table.
    """,
)
async def create_period(
    fParam: CreateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    periodLock = None
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        periodLock = acquireLock(Period.__tablename__)
        period = PeriodRegistry(Storage(session)).create(
            promoteToParent(fParam, PeriodData)
        )

        periodData = jsonable_encoder(period)
        logEvent(token, request_info, periodData)
        return periodData
    except Exception as e:
        exceptions.handle(e)
    finally:
        releaseLock(periodLock)
        session.close()


@route_user.patch(
    URL_PERIOD,
    tags=["Period"],
    response_model=PeriodSchema,
    responses=makeExceptionResponses(
        [
            exceptions.InvalidToken,
            exceptions.InvalidIdentifier,
            exceptions.InvalidInput,
            exceptions.Conflict,
            exceptions.OverlappingPeriod,
            exceptions.LockAcquireTimeout,
        ]
    ),
    description="""
    Update an existing period by ID.
    Only provided fields will be updated, the result is checked against every other period.
    """,
)
async def update_period(
    fParam: UpdateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    periodLock = None
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        periodLock = acquireLock(Period.__tablename__)
        registry = PeriodRegistry(Storage(session))
        previousData = jsonable_encoder(registry.byId(fParam.id))
        period = registry.update(fParam.id, promoteToParent(fParam, PeriodData))

        periodData = jsonable_encoder(period)
        if periodData != previousData:
            logEvent(token, request_info, periodData)
        return periodData
    except Exception as e:
        exceptions.handle(e)
    finally:
        releaseLock(periodLock)
        session.close()


@route_user.delete(
    URL_PERIOD,
    tags=["Period"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=makeExceptionResponses(
        [exceptions.InvalidToken, exceptions.LockAcquireTimeout]
    ),
    description="""
    Delete an existing period by ID, along with the travel times recorded for it.
    If the period does not exist, the operation is silently ignored.
    """,
)
async def delete_period(
    fParam: DeleteForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    periodLock = None
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        periodLock = acquireLock(Period.__tablename__)
        storage = Storage(session)
        if storage.findById(Period, fParam.id) is not None:
            period = PeriodRegistry(storage).delete(fParam.id)
            logEvent(token, request_info, jsonable_encoder(period))
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
    finally:
        releaseLock(periodLock)
        session.close()


## API endpoints [Public]
@route_public.get(
    URL_PERIOD,
    tags=["Period"],
    response_model=List[PeriodSchema],
    description="""
    Fetch the periods ordered by start time, optionally only the one with the given name.
    No authentication required.
    """,
)
async def fetch_period(qParam: QueryParams = Depends()):
    session = sessionMaker()
    try:
        registry = PeriodRegistry(Storage(session))
        if qParam.name is not None:
            period = registry.byName(qParam.name)
            return [] if period is None else [period]
        return registry.listAll()
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_public.get(
    URL_CURRENT_PERIOD,
    tags=["Period"],
    response_model=Optional[PeriodSchema],
    description="""
    Resolve the period active at the given time of day, or now in the server's local timezone.
    Returns null when no period covers that time.
    No authentication required.
    """,
)
async def fetch_current_period(qParam: CurrentQueryParams = Depends()):
    session = sessionMaker()
    try:
        registry = PeriodRegistry(Storage(session))
        if qParam.time_of_day is None:
            return registry.current()
        return currentPeriod(qParam.time_of_day, registry.listAll())
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()
