"""
OpenObserve client used for audit events.

Events are JSON objects posted to the `_json` ingestion endpoint of the
configured organization and stream, authenticated with HTTP Basic auth.
"""

import requests
from requests import Response

from wheely.src.constants import (
    OPENOBSERVE_HOST,
    OPENOBSERVE_ORG,
    OPENOBSERVE_PASSWORD,
    OPENOBSERVE_PORT,
    OPENOBSERVE_PROTOCOL,
    OPENOBSERVE_STREAM,
    OPENOBSERVE_TIMEOUT,
    OPENOBSERVE_USERNAME,
)

openobserveURL = (
    f"{OPENOBSERVE_PROTOCOL}://{OPENOBSERVE_HOST}:{OPENOBSERVE_PORT}"
    f"/api/{OPENOBSERVE_ORG}/{OPENOBSERVE_STREAM}/_json"
)


def logEvent(eventData: dict) -> Response:
    """
    Send one event to OpenObserve.

    Args:
        eventData (dict): JSON serializable event, values are expected to be
            passed through `jsonable_encoder` by the caller.
            Example:
                {
                    "_method": "POST",
                    "_path": "/user/route",
                    "_app_id": 1,
                    "_user_id": 1,
                    "id": 4,
                    "name": "Ruta 4"
                }

    Returns:
        requests.Response: The HTTP response returned by OpenObserve.
    """
    return requests.post(
        openobserveURL,
        json=[eventData],
        auth=(OPENOBSERVE_USERNAME, OPENOBSERVE_PASSWORD),
        timeout=OPENOBSERVE_TIMEOUT,
    )
