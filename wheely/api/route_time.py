from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status, Form
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from wheely.api.bearer import bearer_user
from wheely.src.db import RouteTimeByPeriod, sessionMaker
from wheely.src import exceptions, validators, getters
from wheely.src.loggers import logEvent
from wheely.src.repository import Storage
from wheely.src.schemas import RouteTimeData
from wheely.src.services import RouteTimeService
from wheely.src.functions import makeExceptionResponses, promoteToParent
from wheely.src.urls import URL_ROUTE_ETA, URL_ROUTE_TIME

route_user = APIRouter()
route_public = APIRouter()


## Output Schema
class RouteTimeSchema(BaseModel):
    id: int
    route_id: int
    period_id: int
    average_time: int
    updated_on: Optional[datetime]
    created_on: datetime


class EtaSchema(BaseModel):
    route_id: int
    average_time: Optional[int]


## Input Forms
class CreateForm(BaseModel):
    route_id: int = Field(Form())
    period_id: int = Field(Form())
    average_time: int = Field(Form(description="Average travel time in minutes"))


class UpdateForm(BaseModel):
    id: int = Field(Form())
    route_id: int | None = Field(Form(default=None))
    period_id: int | None = Field(Form(default=None))
    average_time: int | None = Field(Form(default=None))


class DeleteForm(BaseModel):
    id: int = Field(Form())


## Query Parameters
class QueryParams(BaseModel):
    route_id: int | None = Field(Query(default=None))
    period_id: int | None = Field(Query(default=None))
    # Pagination
    offset: int = Field(Query(default=0, ge=0))
    limit: int = Field(Query(default=20, gt=0, le=100))


class EtaQueryParams(BaseModel):
    route_id: int = Field(Query())


## API endpoints [User]
@route_user.post(
    URL_ROUTE_TIME,
    tags=["Route Time"],
    response_model=RouteTimeSchema,
    status_code=status.HTTP_201_CREATED,
    responses=makeExceptionResponses(
        [
            exceptions.InvalidToken,
            exceptions.InvalidInput,
            exceptions.UnknownValue,
            exceptions.Conflict,
        ]
    ),
    description="""
    Record the average travel time of a route during a period.
    The average time must be within 1 and 300 minutes.
    Only one record may exist per route and period.
    """,
)
async def create_route_time(
    fParam: CreateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        record = RouteTimeService(Storage(session)).create(
            promoteToParent(fParam, RouteTimeData)
        )

        recordData = jsonable_encoder(record)
        logEvent(token, request_info, recordData)
        return recordData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.put(
    URL_ROUTE_TIME,
    tags=["Route Time"],
    response_model=RouteTimeSchema,
    responses=makeExceptionResponses(
        [exceptions.InvalidToken, exceptions.InvalidInput, exceptions.UnknownValue]
    ),
    description="""
    Set the average travel time of a route during a period.
    Updates the existing record of the pair or creates it.
    """,
)
async def upsert_route_time(
    fParam: CreateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        record = RouteTimeService(Storage(session)).upsert(
            promoteToParent(fParam, RouteTimeData)
        )

        recordData = jsonable_encoder(record)
        logEvent(token, request_info, recordData)
        return recordData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.patch(
    URL_ROUTE_TIME,
    tags=["Route Time"],
    response_model=RouteTimeSchema,
    responses=makeExceptionResponses(
        [
            exceptions.InvalidToken,
            exceptions.InvalidIdentifier,
            exceptions.InvalidInput,
            exceptions.UnknownValue,
            exceptions.Conflict,
        ]
    ),
    description="""
    Update an existing travel time record by ID.
    Only provided fields will be updated.
    """,
)
async def update_route_time(
    fParam: UpdateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        routeTimeService = RouteTimeService(Storage(session))
        previousData = jsonable_encoder(routeTimeService.byId(fParam.id))
        record = routeTimeService.update(
            fParam.id, promoteToParent(fParam, RouteTimeData)
        )

        recordData = jsonable_encoder(record)
        if recordData != previousData:
            logEvent(token, request_info, recordData)
        return recordData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.delete(
    URL_ROUTE_TIME,
    tags=["Route Time"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=makeExceptionResponses([exceptions.InvalidToken]),
    description="""
    Delete a travel time record by ID.
    If the record does not exist, the operation is silently ignored.
    """,
)
async def delete_route_time(
    fParam: DeleteForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        storage = Storage(session)
        if storage.findById(RouteTimeByPeriod, fParam.id) is not None:
            record = RouteTimeService(storage).delete(fParam.id)
            logEvent(token, request_info, jsonable_encoder(record))
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


## API endpoints [Public]
@route_public.get(
    URL_ROUTE_TIME,
    tags=["Route Time"],
    response_model=List[RouteTimeSchema],
    responses=makeExceptionResponses([exceptions.InvalidInput]),
    description="""
    Fetch travel time records, optionally of one route and/or one period.
    No authentication required.
    """,
)
async def fetch_route_time(qParam: QueryParams = Depends()):
    session = sessionMaker()
    try:
        return RouteTimeService(Storage(session)).search(
            route_id=qParam.route_id,
            period_id=qParam.period_id,
            offset=qParam.offset,
            limit=qParam.limit,
        )
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_public.get(
    URL_ROUTE_ETA,
    tags=["Route Time"],
    response_model=EtaSchema,
    responses=makeExceptionResponses([exceptions.InvalidInput]),
    description="""
    Estimate the current travel time of a route.
    The period active now, in the server's local timezone, selects the recorded average.
    average_time is null when no period is active or the route has no time recorded for it.
    No authentication required.
    """,
)
async def fetch_route_eta(qParam: EtaQueryParams = Depends()):
    session = sessionMaker()
    try:
        averageTime = RouteTimeService(Storage(session)).eta(qParam.route_id)
        return {"route_id": qParam.route_id, "average_time": averageTime}
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()
