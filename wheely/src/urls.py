"""
API Endpoint URL Constants

Relative paths of the resources, mounted under `/user` (authenticated)
and `/public` (anonymous) by `wheely.main`.
"""

# -------------------------------
# Account
# -------------------------------
URL_USER_TOKEN = "/account/token"
URL_USER_ACCOUNT = "/account"
URL_FAVORITE_ROUTE = "/account/favorite"

# -------------------------------
# Transit
# -------------------------------
URL_ROUTE = "/route"
URL_ROUTE_TIME = "/route/time"
URL_ROUTE_ETA = "/route/eta"
URL_PERIOD = "/period"
URL_CURRENT_PERIOD = "/period/current"

# -------------------------------
# Reports
# -------------------------------
URL_REPORT = "/report"
