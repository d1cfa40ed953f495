import datetime, logging
from wheely.src.db import sessionMaker, UserToken
from sqlalchemy.orm import Session
from sqlalchemy import delete

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("Cleaner")


def removeExpiredTokens(session: Session, model) -> int:
    """Delete the tokens of `model` whose expiry is in the past, returning how many were removed."""
    currentTime = datetime.datetime.now(datetime.timezone.utc)
    result = session.execute(delete(model).where(model.expires_at < currentTime))
    session.commit()
    deletedCount = result.rowcount
    logger.info(f"Removed {deletedCount} tokens from {model.__tablename__} table")
    return deletedCount


def main():
    try:
        with sessionMaker() as session:
            removeExpiredTokens(session, UserToken)
    except Exception:
        logger.exception("cleaner.py failed")
        raise


if __name__ == "__main__":
    main()
