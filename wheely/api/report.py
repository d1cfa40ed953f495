from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status, Form
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from wheely.api.bearer import bearer_user
from wheely.src.db import Report, sessionMaker
from wheely.src import exceptions, validators, getters
from wheely.src.enums import ReportType
from wheely.src.loggers import logEvent
from wheely.src.redis import acquireLock, releaseLock
from wheely.src.repository import Storage
from wheely.src.schemas import ReportData
from wheely.src.services import ReportService
from wheely.src.functions import enumStr, makeExceptionResponses, promoteToParent
from wheely.src.urls import URL_REPORT

route_user = APIRouter()
route_public = APIRouter()


## Output Schema
class ReportSchema(BaseModel):
    id: int
    route_id: int
    user_id: int
    type: int
    title: str
    body: str
    updated_on: Optional[datetime]
    created_on: datetime


## Input Forms
class CreateForm(BaseModel):
    route_id: int = Field(Form())
    type: int = Field(Form(description=enumStr(ReportType)))
    title: str = Field(Form(max_length=4096))
    body: str = Field(Form(max_length=32768))


class UpdateForm(BaseModel):
    id: int = Field(Form())
    route_id: int | None = Field(Form(default=None))
    type: int | None = Field(Form(default=None, description=enumStr(ReportType)))
    title: str | None = Field(Form(max_length=4096, default=None))
    body: str | None = Field(Form(max_length=32768, default=None))


class DeleteForm(BaseModel):
    id: int = Field(Form())


## Query Parameters
class QueryParams(BaseModel):
    id: int | None = Field(Query(default=None))
    route_id: int | None = Field(Query(default=None))
    user_id: int | None = Field(Query(default=None))
    type: int | None = Field(Query(default=None, description=enumStr(ReportType)))
    # Pagination
    offset: int = Field(Query(default=0, ge=0))
    limit: int = Field(Query(default=20, gt=0, le=100))


## API endpoints [User]
@route_user.post(
    URL_REPORT,
    tags=["Report"],
    response_model=ReportSchema,
    status_code=status.HTTP_201_CREATED,
    responses=makeExceptionResponses(
        [exceptions.InvalidToken, exceptions.InvalidInput, exceptions.UnknownValue]
    ),
    description="""
    File a report about a route.
    The author is the owner of the token, the creation time is assigned by the server.
    """,
)
async def create_report(
    fParam: CreateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        report = ReportService(Storage(session)).create(
            token.user_id, promoteToParent(fParam, ReportData)
        )

        reportData = jsonable_encoder(report)
        logEvent(token, request_info, reportData)
        return reportData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.patch(
    URL_REPORT,
    tags=["Report"],
    response_model=ReportSchema,
    responses=makeExceptionResponses(
        [
            exceptions.InvalidToken,
            exceptions.InvalidIdentifier,
            exceptions.NotAuthor,
            exceptions.InvalidInput,
            exceptions.UnknownValue,
        ]
    ),
    description="""
    Update a report by ID.
    Only the author of the report can update it. Only provided fields will be updated.
    """,
)
async def update_report(
    fParam: UpdateForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        reportService = ReportService(Storage(session))
        previousData = jsonable_encoder(reportService.byId(fParam.id))
        report = reportService.update(
            fParam.id, token.user_id, promoteToParent(fParam, ReportData)
        )

        reportData = jsonable_encoder(report)
        if reportData != previousData:
            logEvent(token, request_info, reportData)
        return reportData
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_user.delete(
    URL_REPORT,
    tags=["Report"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=makeExceptionResponses(
        [exceptions.InvalidToken, exceptions.NotAuthor, exceptions.LockAcquireTimeout]
    ),
    description="""
    Delete a report by ID.
    Only the author, or the configured administrator account, can delete a report.
    If the report does not exist, the operation is silently ignored.
    """,
)
async def delete_report(
    fParam: DeleteForm = Depends(),
    bearer=Depends(bearer_user),
    request_info=Depends(getters.requestInfo),
):
    reportLock = None
    session = sessionMaker()
    try:
        token = validators.userToken(bearer.credentials, session)

        reportLock = acquireLock(Report.__tablename__, fParam.id)
        storage = Storage(session)
        if storage.findById(Report, fParam.id) is not None:
            report = ReportService(storage).delete(fParam.id, token.user_id)
            logEvent(token, request_info, jsonable_encoder(report))
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
    finally:
        releaseLock(reportLock)
        session.close()


## API endpoints [Public]
@route_public.get(
    URL_REPORT,
    tags=["Report"],
    response_model=List[ReportSchema],
    description="""
    Fetch reports, newest first.
    Supports filtering by ID, route, author and report type.
    No authentication required.
    """,
)
async def fetch_report(qParam: QueryParams = Depends()):
    session = sessionMaker()
    try:
        storage = Storage(session)
        if qParam.id is not None:
            report = storage.findById(Report, qParam.id)
            return [] if report is None else [report]
        return ReportService(storage).search(
            route_id=qParam.route_id,
            user_id=qParam.user_id,
            type=qParam.type,
            offset=qParam.offset,
            limit=qParam.limit,
        )
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()
