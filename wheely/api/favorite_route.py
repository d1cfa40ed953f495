from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, Query, Response, status, Form
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from wheely.api.bearer import bearer_user
from wheely.src.db import sessionMaker
from wheely.src import exceptions, validators, getters
from wheely.src.loggers import logEvent
from wheely.src.repository import Storage
from wheely.src.schemas import FavoriteRouteData
from wheely.src.services import FavoriteRouteService
from wheely.src.functions import makeExceptionResponses
from wheely.src.urls import URL_FAVORITE_ROUTE

route_user = APIRouter()


## Output Schema
class FavoriteRouteSchema(BaseModel):
    id: int
    user_id: int
    route_id: int
    created_on: datetime


## Input Forms
class CreateForm(BaseModel):
    route_id: int = Field(Form())


class DeleteForm(BaseModel):
    route_id: int = Field(Form())


## Query Parameters
class QueryParams(BaseModel):
    route_id: int | None = Field(
        Query(default=None, description="Only the favorite of this route, if any")
    )
    # Pagination
    offset: int = Field(Query(default=0, ge=0))
    limit: int = Field(Query(default=20, gt=0, le=100))


## API endpoints [User]
@route_user.post(
    URL_FAVORITE_ROUTE,
    tags=["Favorite Route"],
    response_model=FavoriteRouteSchema,
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
    Add a route to the favorites of the token owner.
    A route can be added only once.
    """,
)
async def create_favorite_route(
    fParam: CreateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        favorite = FavoriteRouteService(Storage(session)).create(
            FavoriteRouteData(user_id=token.user_id, route_id=fParam.route_id)
        )

        favoriteData = jsonable_encoder(favorite)
        logEvent(token, request_info, favoriteData)
        return favoriteData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.delete(
    URL_FAVORITE_ROUTE,
    tags=["Favorite Route"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=makeExceptionResponses(
        [exceptions.InvalidToken, exceptions.InvalidInput]
    ),
    description="""
    Remove a route from the favorites of the token owner.
    If the route is not a favorite, the operation is silently ignored.
    """,
)
async def delete_favorite_route(
    fParam: DeleteForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        favoriteService = FavoriteRouteService(Storage(session))
        if favoriteService.exists(token.user_id, fParam.route_id):
            favorite = favoriteService.delete(token.user_id, fParam.route_id)
            logEvent(token, request_info, jsonable_encoder(favorite))
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.get(
    URL_FAVORITE_ROUTE,
    tags=["Favorite Route"],
    response_model=List[FavoriteRouteSchema],
    responses=makeExceptionResponses([exceptions.InvalidToken]),
    description="""
    Fetch the favorite routes of the token owner, most recent first.
    """,
)
async def fetch_favorite_route(
    qParam: QueryParams = Depends(), bearer=Depends(bearer_user)
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        return FavoriteRouteService(Storage(session)).listFor(
            token.user_id,
            route_id=qParam.route_id,
            offset=qParam.offset,
            limit=qParam.limit,
        )
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()
