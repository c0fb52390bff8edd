"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and the three write primitives every
    store shares:

    - ``_insert``: add one row inside a savepoint, translating constraint
      failures into ``ConstraintViolationError``;
    - ``_apply_update``: validate a sparse update map against the entity's
      ``UpdatePolicy`` and apply it as one UPDATE scoped by the key
      predicate;
    - ``_delete_by_key``: one DELETE scoped by the key predicate.

Architecture position:
    Kernel > Services.  Services receive a SQLAlchemy ``Session`` and use
    ``session.flush()`` -- never ``session.commit()``.  The caller (the
    ``InventoryLedger`` facade or a test) owns commit/rollback.

Failure modes:
    - ``RecordNotFoundError`` when an UPDATE/DELETE touches zero rows.
    - ``InvalidFieldError`` / ``NoFieldsToUpdateError`` from validation.
    - ``ConstraintViolationError`` when the store rejects a row.
"""

from abc import ABC
from typing import Any, Generic, Mapping, TypeVar

from sqlalchemy import and_, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.partial_update import (
    PartialUpdate,
    UpdatePolicy,
    validate_partial_update,
)
from inventory_kernel.exceptions import ConstraintViolationError, RecordNotFoundError

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``; savepoints are used so a rejected write
          leaves the caller's session usable.
    """

    model: type[ModelType]
    policy: UpdatePolicy

    def __init__(self, session: Session, clock: Clock | None = None):
        """
        Args:
            session: SQLAlchemy session for database operations.
            clock: Clock for timestamps. Defaults to SystemClock.
        """
        self.session = session
        self.clock = clock or SystemClock()

    def _key_predicate(self, key: tuple):
        columns = [getattr(self.model, name) for name in self.policy.key_fields]
        return and_(*(column == value for column, value in zip(columns, key)))

    def _insert(self, row: ModelType, key: tuple) -> ModelType:
        now = self.clock.now()
        row.created_at = now
        row.updated_at = now
        try:
            with self.session.begin_nested():
                self.session.add(row)
                self.session.flush()
        except IntegrityError as exc:
            raise ConstraintViolationError(
                self.policy.entity, key, str(exc.orig)
            ) from exc
        return row

    def _apply_update(
        self, key: tuple, updates: Mapping[str, Any]
    ) -> PartialUpdate:
        """
        Validate and apply a partial update.

        Raises:
            InvalidFieldError: if a field is outside the whitelist.
            NoFieldsToUpdateError: if nothing is left to update.
            RecordNotFoundError: if no row matches ``key``.
            ConstraintViolationError: if the new values break a constraint.
        """
        mutation = validate_partial_update(self.policy, updates, self.clock.now())
        stmt = (
            update(self.model)
            .where(self._key_predicate(key))
            .values(dict(mutation.values))
            .execution_options(synchronize_session="evaluate")
        )
        try:
            with self.session.begin_nested():
                result = self.session.execute(stmt)
        except IntegrityError as exc:
            raise ConstraintViolationError(
                self.policy.entity, key, str(exc.orig)
            ) from exc
        if result.rowcount == 0:
            raise RecordNotFoundError(self.policy.entity, key)
        return mutation

    def _delete_by_key(self, key: tuple) -> int:
        """
        Delete the row matching ``key``.

        Raises:
            RecordNotFoundError: if no row matches ``key``.
        """
        stmt = (
            delete(self.model)
            .where(self._key_predicate(key))
            .execution_options(synchronize_session="evaluate")
        )
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            raise RecordNotFoundError(self.policy.entity, key)
        return result.rowcount
