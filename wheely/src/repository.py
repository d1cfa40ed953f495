"""
Storage access used by the guards and services.

`Storage` wraps a SQLAlchemy session. Reads never mutate, writes commit
immediately and roll the session back before re-raising when the database
rejects them, so a failed write leaves nothing behind.
"""

from typing import Optional
from sqlalchemy.orm import Session


class Storage:
    def __init__(self, session: Session):
        self.session = session

    # ---------------------------------------------------------------------------
    # Reads
    # ---------------------------------------------------------------------------
    def findById(self, model, id: int):
        return self.session.get(model, id)

    def findOne(self, model, **filters):
        """Return the first record whose columns equal the given values, or None."""
        return self.session.query(model).filter_by(**filters).first()

    def findAll(
        self,
        model,
        *criteria,
        orderBy=None,
        offset: int = 0,
        limit: Optional[int] = None,
        **filters,
    ) -> list:
        """
        Fetch records of `model`.

        Args:
            model: ORM class to query.
            *criteria: Extra SQLAlchemy filter expressions, ex:- `Route.name.ilike("%centro%")`.
            orderBy: Column or ordering expression, defaults to the primary key.
            offset (int): Number of records to skip.
            limit (Optional[int]): Maximum number of records to return.
            **filters: Exact column values to match.

        Returns:
            list: The matching records.
        """
        query = self.session.query(model).filter_by(**filters)
        if criteria:
            query = query.filter(*criteria)
        query = query.order_by(orderBy if orderBy is not None else model.id)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def exists(self, model, excludeId: Optional[int] = None, **filters) -> bool:
        """
        Check whether a record with the given column values exists.

        Args:
            model: ORM class to query.
            excludeId (Optional[int]): Identity ignored by the check, used on
                update so that a record does not collide with itself.
            **filters: Column values forming the key, ex:- `route_id=5, period_id=2`.
        """
        query = self.session.query(model).filter_by(**filters)
        if excludeId is not None:
            query = query.filter(model.id != excludeId)
        return self.session.query(query.exists()).scalar()

    # ---------------------------------------------------------------------------
    # Writes
    # ---------------------------------------------------------------------------
    def save(self, entity):
        try:
            self.session.add(entity)
            self.session.commit()
            self.session.refresh(entity)
            return entity
        except Exception:
            self.session.rollback()
            raise

    def update(self, entity):
        try:
            self.session.commit()
            self.session.refresh(entity)
            return entity
        except Exception:
            self.session.rollback()
            raise

    def delete(self, entity) -> None:
        try:
            self.session.delete(entity)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
