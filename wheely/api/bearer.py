from fastapi.security import HTTPBearer

# HTTP Bearer authentication scheme for registered users
bearer_user = HTTPBearer(scheme_name="User HTTPBearer")
