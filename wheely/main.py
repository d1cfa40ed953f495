from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from wheely.src import exceptions, schemas
from wheely.src.constants import API_TITLE, API_VERSION
from wheely.src.db import sessionMaker
from wheely.src.functions import makeExceptionResponses
from wheely.api.controller import app_user, app_public


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    description="Routes, periods of the day, travel times and rider reports",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Authenticated writes and account management
app.mount("/user", app_user, "User API")
# Anonymous reads and registration
app.mount("/public", app_public, "Public API")


@app.get(
    "/health",
    tags=["Health Check"],
    response_model=schemas.HealthStatus,
    responses=makeExceptionResponses([exceptions.StorageFailure]),
)
async def health_check():
    """Report the API version once the database answers a trivial query."""
    session = sessionMaker()
    try:
        session.execute(text("SELECT 1"))
        return {"status": "OK", "version": API_VERSION}
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("wheely.main:app", host="0.0.0.0", port=8080)
