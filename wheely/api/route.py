from datetime import datetime
from enum import IntEnum
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status, Form
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from wheely.api.bearer import bearer_user
from wheely.src.db import Route, sessionMaker
from wheely.src import exceptions, validators, getters
from wheely.src.enums import OrderIn
from wheely.src.loggers import logEvent
from wheely.src.redis import acquireLock, releaseLock
from wheely.src.repository import Storage
from wheely.src.schemas import RouteData
from wheely.src.services import RouteService
from wheely.src.functions import enumStr, makeExceptionResponses, promoteToParent
from wheely.src.urls import URL_ROUTE

route_user = APIRouter()
route_public = APIRouter()


## Output Schema
class RouteSchema(BaseModel):
    id: int
    name: str
    origin: str
    destination: str
    updated_on: Optional[datetime]
    created_on: datetime


## Input Forms
class CreateForm(BaseModel):
    name: str = Field(Form(max_length=4096))
    origin: str = Field(Form(max_length=4096))
    destination: str = Field(Form(max_length=4096))


class UpdateForm(BaseModel):
    id: int = Field(Form())
    name: str | None = Field(Form(max_length=4096, default=None))
    origin: str | None = Field(Form(max_length=4096, default=None))
    destination: str | None = Field(Form(max_length=4096, default=None))


class DeleteForm(BaseModel):
    id: int = Field(Form())


## Query Parameters
class OrderBy(IntEnum):
    id = 1
    name = 2
    updated_on = 3
    created_on = 4


class QueryParams(BaseModel):
    name: str | None = Field(Query(default=None))
    origin: str | None = Field(Query(default=None))
    destination: str | None = Field(Query(default=None))
    # Ordering
    order_by: OrderBy = Field(Query(default=OrderBy.id, description=enumStr(OrderBy)))
    order_in: OrderIn = Field(Query(default=OrderIn.DESC, description=enumStr(OrderIn)))
    # Pagination
    offset: int = Field(Query(default=0, ge=0))
    limit: int = Field(Query(default=20, gt=0, le=100))


## API endpoints [User]
@route_user.post(
    URL_ROUTE,
    tags=["Route"],
    response_model=RouteSchema,
    status_code=status.HTTP_201_CREATED,
    responses=makeExceptionResponses(
        [exceptions.InvalidToken, exceptions.InvalidInput, exceptions.Conflict]
    ),
    description="""
    Create a new route.
    The name, origin and destination are trimmed and required, the name must be unique.
    Logs the route creation activity with the associated token.
    """,
)
async def create_route(
    fParam: CreateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        route = RouteService(Storage(session)).create(
            promoteToParent(fParam, RouteData)
        )

        routeData = jsonable_encoder(route)
        logEvent(token, request_info, routeData)
        return routeData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.patch(
    URL_ROUTE,
    tags=["Route"],
    response_model=RouteSchema,
    responses=makeExceptionResponses(
        [
            exceptions.InvalidToken,
            exceptions.InvalidIdentifier,
            exceptions.InvalidInput,
            exceptions.Conflict,
        ]
    ),
    description="""
    Update an existing route by ID.
    Only provided fields (name, origin, destination) will be updated.
    """,
)
async def update_route(
    fParam: UpdateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        routeService = RouteService(Storage(session))
        previousData = jsonable_encoder(routeService.byId(fParam.id))
        route = routeService.update(fParam.id, promoteToParent(fParam, RouteData))

        routeData = jsonable_encoder(route)
        if routeData != previousData:
            logEvent(token, request_info, routeData)
        return routeData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.delete(
    URL_ROUTE,
    tags=["Route"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=makeExceptionResponses(
        [exceptions.InvalidToken, exceptions.LockAcquireTimeout]
    ),
    description="""
    Delete an existing route by ID.
    The travel times, reports and favorites of the route are deleted along with it.
    If the route does not exist, the operation is silently ignored.
    """,
)
async def delete_route(
    fParam: DeleteForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    routeLock = None
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        routeLock = acquireLock(Route.__tablename__, fParam.id)
        storage = Storage(session)
        if storage.findById(Route, fParam.id) is not None:
            route = RouteService(storage).delete(fParam.id)
            logEvent(token, request_info, jsonable_encoder(route))
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
    finally:
        releaseLock(routeLock)
        session.close()


## API endpoints [Public]
@route_public.get(
    URL_ROUTE,
    tags=["Route"],
    response_model=List[RouteSchema],
    description="""
    Fetch the list of routes.
    Name, origin and destination filters match case-insensitive substrings.
    No authentication required.
    """,
)
async def fetch_route(qParam: QueryParams = Depends()):
    session = sessionMaker()
    try:
        return RouteService(Storage(session)).search(
            name=qParam.name,
            origin=qParam.origin,
            destination=qParam.destination,
            orderBy=OrderBy(qParam.order_by).name,
            orderIn=qParam.order_in,
            offset=qParam.offset,
            limit=qParam.limit,
        )
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()
