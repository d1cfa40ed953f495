"""
Shared pydantic models.

`RequestInfo`, `HealthStatus` and `ErrorResponse` belong to the transport
layer. The `*Data` models are the candidate entity values accepted by the
services in `wheely.src.services` and `wheely.src.periods`. Every field is
optional so that the validators, not pydantic, decide which rule is
violated first.
"""

from datetime import time
from typing import Optional
from pydantic import BaseModel


class RequestInfo(BaseModel):
    method: str
    path: str
    app_id: int


class HealthStatus(BaseModel):
    status: str
    version: str


class ErrorResponse(BaseModel):
    detail: str


## Candidate entity values
class RouteData(BaseModel):
    name: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None


class PeriodData(BaseModel):
    name: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    description: Optional[str] = None


class RouteTimeData(BaseModel):
    route_id: Optional[int] = None
    period_id: Optional[int] = None
    average_time: Optional[int] = None


class ReportData(BaseModel):
    route_id: Optional[int] = None
    type: Optional[int] = None
    title: Optional[str] = None
    body: Optional[str] = None


class FavoriteRouteData(BaseModel):
    user_id: Optional[int] = None
    route_id: Optional[int] = None


class UserData(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
