"""
Partial-update validation (``inventory_kernel.domain.partial_update``).

Responsibility
--------------
Turns a sparse, caller-supplied update map into a safe mutation: key and
timestamp fields are stripped, every remaining field must be whitelisted
for the entity, and an empty result is rejected.  The outcome is a
``PartialUpdate`` that the service layer applies as a single
``UPDATE ... WHERE <key>`` statement (``BaseService._apply_update``).

One policy per entity lives next to its service; this module holds no
entity-specific knowledge.

Architecture position
---------------------
Kernel > Domain -- pure.  No session, no I/O.  The clock value is passed in.

Failure modes
-------------
- ``InvalidFieldError`` if any non-stripped field is outside the whitelist.
  Field names are checked before anything reaches SQL, so arbitrary keys
  can never become column names in a statement.
- ``NoFieldsToUpdateError`` if nothing remains after stripping.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping

from inventory_kernel.exceptions import InvalidFieldError, NoFieldsToUpdateError

TIMESTAMP_FIELDS = frozenset({"created_at", "updated_at"})


@dataclass(frozen=True)
class UpdatePolicy:
    """
    Which fields of an entity a partial update may touch.

    Attributes:
        entity: Entity name used in error messages.
        key_fields: Business key columns.  Silently stripped from updates
            and used to build the WHERE predicate.
        allowed_fields: Whitelist of mutable columns.
    """

    entity: str
    key_fields: tuple[str, ...]
    allowed_fields: frozenset[str]

    @property
    def stripped_fields(self) -> frozenset[str]:
        return frozenset(self.key_fields) | TIMESTAMP_FIELDS


@dataclass(frozen=True)
class PartialUpdate:
    """A validated mutation: column -> new value, always including updated_at."""

    entity: str
    values: Mapping[str, Any]

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(k for k in self.values if k != "updated_at")


def validate_partial_update(
    policy: UpdatePolicy,
    updates: Mapping[str, Any],
    now: datetime,
) -> PartialUpdate:
    """
    Validate ``updates`` against ``policy``.

    Postconditions:
        - Returned values contain only whitelisted fields plus ``updated_at``.
        - Input order of the fields is preserved.

    Raises:
        InvalidFieldError: if a field is not whitelisted.
        NoFieldsToUpdateError: if nothing is left to update.
    """
    remaining = {
        name: value
        for name, value in updates.items()
        if name not in policy.stripped_fields
    }

    invalid = sorted(name for name in remaining if name not in policy.allowed_fields)
    if invalid:
        raise InvalidFieldError(policy.entity, invalid)

    if not remaining:
        raise NoFieldsToUpdateError(policy.entity)

    remaining["updated_at"] = now
    return PartialUpdate(entity=policy.entity, values=MappingProxyType(remaining))
