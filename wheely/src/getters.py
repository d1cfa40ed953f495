from fastapi import Request
from sqlalchemy.orm.session import Session

from wheely.src import schemas
from wheely.src.db import User, UserToken


def requestInfo(request: Request) -> schemas.RequestInfo:
    """
    Extract metadata about the incoming request.

    Args:
        request (Request): FastAPI request object.

    Returns:
        schemas.RequestInfo: Pydantic model containing:
            - method (str): HTTP method (GET, POST, etc.).
            - path (str): Path portion of the request URL.
            - app_id (int): Application ID from app state.
    """
    return schemas.RequestInfo(
        method=request.method,
        path=request.url.path,
        app_id=request.scope["app"].state.id,
    )


def tokenOwner(token: UserToken, session: Session) -> User | None:
    """Fetch the user a token was issued to."""
    return session.query(User).filter(User.id == token.user_id).first()
