from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Response, status, Form
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from wheely.api.bearer import bearer_user
from wheely.src.db import sessionMaker
from wheely.src import exceptions, validators, getters
from wheely.src.loggers import logEvent
from wheely.src.repository import Storage
from wheely.src.schemas import UserData
from wheely.src.services import UserService
from wheely.src.functions import makeExceptionResponses, promoteToParent
from wheely.src.urls import URL_USER_ACCOUNT

route_user = APIRouter()
route_public = APIRouter()


## Output Schema
class UserSchema(BaseModel):
    id: int
    name: str
    email: str
    updated_on: Optional[datetime]
    created_on: datetime


## Input Forms
class CreateForm(BaseModel):
    name: str = Field(Form(max_length=4096))
    email: str = Field(Form(max_length=4096))
    password: str = Field(Form(max_length=256))


class UpdateForm(BaseModel):
    name: str | None = Field(Form(max_length=4096, default=None))
    email: str | None = Field(Form(max_length=4096, default=None))
    password: str | None = Field(Form(max_length=256, default=None))


## API endpoints [Public]
@route_public.post(
    URL_USER_ACCOUNT,
    tags=["Account"],
    response_model=UserSchema,
    status_code=status.HTTP_201_CREATED,
    responses=makeExceptionResponses(
        [exceptions.InvalidInput, exceptions.InvalidPassword, exceptions.Conflict]
    ),
    description="""
    Register a new user account.
    The email must be unique and well formed.
    The password needs at least 8 characters with an uppercase letter, a lowercase letter,
    a digit and one of the symbols #%$"/!?¿¡\\. Every unmet rule is listed in the error.
    """,
)
async def create_account(
    fParam: CreateForm = Depends(),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        user = UserService(Storage(session)).register(promoteToParent(fParam, UserData))

        userData = jsonable_encoder(user, exclude={"password"})
        logEvent(None, request_info, userData)
        return userData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


## API endpoints [User]
@route_user.patch(
    URL_USER_ACCOUNT,
    tags=["Account"],
    response_model=UserSchema,
    responses=makeExceptionResponses(
        [
            exceptions.InvalidToken,
            exceptions.InvalidInput,
            exceptions.InvalidPassword,
            exceptions.Conflict,
        ]
    ),
    description="""
    Update the account of the token owner.
    Only provided fields will be updated, the password is replaced only when given.
    """,
)
async def update_account(
    fParam: UpdateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        userService = UserService(Storage(session))
        previousData = jsonable_encoder(userService.byId(token.user_id))
        user = userService.update(token.user_id, promoteToParent(fParam, UserData))

        userData = jsonable_encoder(user)
        haveUpdates = userData != previousData
        userData.pop("password")
        if haveUpdates:
            logEvent(token, request_info, userData)
        return userData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.delete(
    URL_USER_ACCOUNT,
    tags=["Account"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=makeExceptionResponses([exceptions.InvalidToken]),
    description="""
    Delete the account of the token owner.
    Tokens, reports and favorites of the account are deleted along with it.
    """,
)
async def delete_account(
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        user = UserService(Storage(session)).delete(token.user_id)
        logEvent(token, request_info, jsonable_encoder(user, exclude={"password"}))
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.get(
    URL_USER_ACCOUNT,
    tags=["Account"],
    response_model=UserSchema,
    responses=makeExceptionResponses([exceptions.InvalidToken]),
    description="""
    Fetch the account of the token owner.
    """,
)
async def fetch_account(bearer=Depends(bearer_user)):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        return getters.tokenOwner(token, session)
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()
