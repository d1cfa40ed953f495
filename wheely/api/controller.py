from fastapi import FastAPI
from wheely.api import (
    user_token,
    user_account,
    favorite_route,
    route,
    period,
    route_time,
    report,
)
from wheely.src.enums import AppID


# ------------------------------------------------------
# Create separate FastAPI apps for each audience
# ------------------------------------------------------
app_user = FastAPI(title="User APP")
app_public = FastAPI(title="Public APP")

# Tag each app with its AppID
app_user.state.id = AppID.USER
app_public.state.id = AppID.PUBLIC


# ------------------------------------------------------
# User routers
# ------------------------------------------------------
app_user.include_router(user_token.route_user)
app_user.include_router(user_account.route_user)
app_user.include_router(favorite_route.route_user)
app_user.include_router(route.route_user)
app_user.include_router(period.route_user)
app_user.include_router(route_time.route_user)
app_user.include_router(report.route_user)


# ------------------------------------------------------
# Public routers
# ------------------------------------------------------
app_public.include_router(user_account.route_public)
app_public.include_router(route.route_public)
app_public.include_router(period.route_public)
app_public.include_router(route_time.route_public)
app_public.include_router(report.route_public)
