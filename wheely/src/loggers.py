from typing import Optional
from wheely.src.db import UserToken
from wheely.src import openobserve
from wheely.src.schemas import RequestInfo


def logEvent(
    token: Optional[UserToken],
    requestInfo: RequestInfo,
    data: dict,
) -> None:
    """
    Log an event to OpenObserve with request and user context.

    Args:
        token (Optional[UserToken]): Authenticated user token, None for
            anonymous requests such as account registration.
        requestInfo (RequestInfo): Metadata about the current request.
        data (dict): Additional event-specific details to include in the log.

    Notes:
        - Automatically attaches `_app_id`, `_method`, `_path` and, when a
          token is given, `_user_id`.
        - Keys of `data` override the attached ones.
    """
    logDetails = {
        "_method": requestInfo.method,
        "_path": requestInfo.path,
        "_app_id": requestInfo.app_id,
    }

    if isinstance(token, UserToken):
        logDetails["_user_id"] = token.user_id

    logDetails.update(data)
    openobserve.logEvent(logDetails)
