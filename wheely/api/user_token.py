from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status, Form
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from wheely.api.bearer import bearer_user
from wheely.src.constants import MAX_TOKEN_VALIDITY, MAX_USER_TOKENS
from wheely.src.db import UserToken, sessionMaker
from wheely.src import exceptions, validators, getters
from wheely.src.enums import OrderIn, PlatformType
from wheely.src.loggers import logEvent
from wheely.src.repository import Storage
from wheely.src.services import UserService
from wheely.src.functions import enumStr, makeExceptionResponses
from wheely.src.urls import URL_USER_TOKEN

route_user = APIRouter()


## Output Schema
class MaskedUserTokenSchema(BaseModel):
    id: int
    user_id: int
    expires_in: int
    platform_type: int
    client_details: Optional[str]
    updated_on: Optional[datetime]
    created_on: datetime


class UserTokenSchema(MaskedUserTokenSchema):
    access_token: str
    token_type: Optional[str] = "bearer"


## Input Forms
class CreateForm(BaseModel):
    email: str = Field(Form(max_length=256))
    password: str = Field(Form(max_length=256))
    platform_type: PlatformType = Field(
        Form(description=enumStr(PlatformType), default=PlatformType.OTHER)
    )
    client_details: str | None = Field(Form(max_length=1024, default=None))


class DeleteForm(BaseModel):
    id: int | None = Field(Form(default=None))


## Query Parameters
class OrderBy(IntEnum):
    id = 1
    updated_on = 2
    created_on = 3


class QueryParams(BaseModel):
    platform_type: PlatformType | None = Field(
        Query(default=None, description=enumStr(PlatformType))
    )
    # Ordering
    order_by: OrderBy = Field(Query(default=OrderBy.id, description=enumStr(OrderBy)))
    order_in: OrderIn = Field(Query(default=OrderIn.DESC, description=enumStr(OrderIn)))
    # Pagination
    offset: int = Field(Query(default=0, ge=0))
    limit: int = Field(Query(default=20, gt=0, le=100))


## API endpoints [User]
@route_user.post(
    URL_USER_TOKEN,
    tags=["Token"],
    response_model=UserTokenSchema,
    status_code=status.HTTP_201_CREATED,
    responses=makeExceptionResponses([exceptions.InvalidCredentials]),
    description="""
    Issues a new access token for a user after validating the email and password.
    Limits active tokens using MAX_USER_TOKENS (the oldest token is rotated out).
    Sets expiration with expires_in=MAX_TOKEN_VALIDITY (in seconds).
    Logs the authentication event for audit tracking.
    """,
)
async def create_token(
    fParam: CreateForm = Depends(),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        user = UserService(Storage(session)).authenticate(
            fParam.email, fParam.password
        )
        if user is None:
            raise exceptions.InvalidCredentials()

        # Remove excess tokens from DB
        tokens = (
            session.query(UserToken)
            .filter(UserToken.user_id == user.id)
            .order_by(UserToken.created_on.desc(), UserToken.id.desc())
            .all()
        )
        for excessToken in tokens[MAX_USER_TOKENS - 1 :]:
            session.delete(excessToken)
        session.flush()

        # Create a new token
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=MAX_TOKEN_VALIDITY)
        token = UserToken(
            user_id=user.id,
            expires_in=MAX_TOKEN_VALIDITY,
            expires_at=expires_at,
            platform_type=fParam.platform_type,
            client_details=fParam.client_details,
        )
        session.add(token)
        session.commit()
        session.refresh(token)

        tokenData = jsonable_encoder(token)
        tokenLogData = tokenData.copy()
        tokenLogData.pop("access_token")
        logEvent(token, request_info, tokenLogData)
        return tokenData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.delete(
    URL_USER_TOKEN,
    tags=["Token"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=makeExceptionResponses([exceptions.InvalidToken, exceptions.Unauthorized]),
    description="""
    Revokes an access token of the user.
    If no ID is provided, it deletes the token used in the request (logout).
    If an ID is provided, the token must belong to the same user.
    If the token ID is invalid or already deleted, the operation is silently ignored.
    """,
)
async def delete_token(
    fParam: DeleteForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        if fParam.id is None:
            tokenToDelete = token
        else:
            tokenToDelete = (
                session.query(UserToken).filter(UserToken.id == fParam.id).first()
            )
            if tokenToDelete is None:
                return Response(status_code=status.HTTP_204_NO_CONTENT)
            if tokenToDelete.user_id != token.user_id:
                raise exceptions.Unauthorized()

        session.delete(tokenToDelete)
        session.commit()
        logEvent(
            token,
            request_info,
            jsonable_encoder(tokenToDelete, exclude={"access_token"}),
        )
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.get(
    URL_USER_TOKEN,
    tags=["Token"],
    response_model=List[MaskedUserTokenSchema],
    responses=makeExceptionResponses([exceptions.InvalidToken]),
    description="""
    Retrieves the masked tokens of the authenticated user, excluding the access_token content.
    Useful for reviewing the devices signed in to the account.
    """,
)
async def fetch_tokens(qParam: QueryParams = Depends(), bearer=Depends(bearer_user)):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        query = session.query(UserToken).filter(UserToken.user_id == token.user_id)
        if qParam.platform_type is not None:
            query = query.filter(UserToken.platform_type == qParam.platform_type)

        # Ordering
        orderingAttribute = getattr(UserToken, OrderBy(qParam.order_by).name)
        if qParam.order_in == OrderIn.ASC:
            query = query.order_by(orderingAttribute.asc())
        else:
            query = query.order_by(orderingAttribute.desc())

        # Pagination
        query = query.offset(qParam.offset).limit(qParam.limit)
        return query.all()
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()
