"""
Redis backed mutex locks.

Writes whose invariants the database cannot enforce on its own, such as the
non-overlapping periods, run while holding a lock on the table. Row level
locks serialize deletes of a single record.
"""

from redis import Redis
from typing import Optional
from redis.lock import Lock

from wheely.src import exceptions
from wheely.src.constants import (
    REDIS_HOST,
    REDIS_PORT,
    REDIS_PASSWORD,
    REDIS_DB,
    MUTEX_LOCK_TIMEOUT,
    MUTEX_LOCK_MAX_WAIT_TIME,
)

# The connection is opened lazily on first use
redisClient = Redis(
    host=REDIS_HOST,
    port=REDIS_PORT,
    password=REDIS_PASSWORD,
    db=REDIS_DB,
    decode_responses=True,
)


def lockName(tableName: str, pk: Optional[int] = None) -> str:
    """
    Example:
        >>> lockName("period")
        'lock:period'
        >>> lockName("report", 12)
        'lock:report:12'
    """
    return f"lock:{tableName}" if pk is None else f"lock:{tableName}:{pk}"


def acquireLock(
    tableName: str,
    pk: Optional[int] = None,
    timeOut: int = MUTEX_LOCK_TIMEOUT,
    blockingTimeOut: int = MUTEX_LOCK_MAX_WAIT_TIME,
) -> Lock:
    """
    Acquire a mutex lock on a table, or on one of its rows when `pk` is given.

    Args:
        tableName (str): Name of the table to lock.
        pk (Optional[int]): Primary key for row-level locking.
        timeOut (int): Lock expiration in seconds, it is released automatically after that.
        blockingTimeOut (int): Maximum time in seconds to wait for the lock.

    Returns:
        Lock: The acquired lock, to be passed to `releaseLock`.

    Raises:
        exceptions.LockAcquireTimeout: If the lock is still held by someone else after `blockingTimeOut`.
        exceptions.RedisDBError: If Redis cannot be reached.
    """
    try:
        lock = redisClient.lock(lockName(tableName, pk), timeout=timeOut)
        if lock.acquire(blocking=True, blocking_timeout=blockingTimeOut):
            return lock
        raise exceptions.LockAcquireTimeout()
    except Exception as e:
        exceptions.handle(e)


def releaseLock(lock: Optional[Lock]) -> None:
    """Release a lock acquired by this client, None and expired locks are ignored."""
    if lock and lock.locked() and lock.owned():
        lock.release()
