"""
Tests for partial-update validation.

The validator is pure, so these run without a database.
"""

from datetime import datetime, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from inventory_kernel.domain.partial_update import (
    TIMESTAMP_FIELDS,
    UpdatePolicy,
    validate_partial_update,
)
from inventory_kernel.exceptions import InvalidFieldError, NoFieldsToUpdateError

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

POLICY = UpdatePolicy(
    entity="Widget",
    key_fields=("code", "variant"),
    allowed_fields=frozenset({"name", "colour", "weight"}),
)


class TestValidatePartialUpdate:

    def test_whitelisted_fields_pass_with_updated_at(self):
        mutation = validate_partial_update(POLICY, {"name": "x", "weight": 2}, NOW)

        assert dict(mutation.values) == {"name": "x", "weight": 2, "updated_at": NOW}
        assert mutation.fields == ("name", "weight")
        assert mutation.entity == "Widget"

    def test_keys_and_timestamps_stripped(self):
        mutation = validate_partial_update(
            POLICY,
            {"code": "A", "variant": 2, "created_at": "x", "updated_at": "y", "colour": "red"},
            NOW,
        )

        assert dict(mutation.values) == {"colour": "red", "updated_at": NOW}

    def test_invalid_fields_sorted(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            validate_partial_update(POLICY, {"zeta": 1, "alpha": 2, "name": "ok"}, NOW)

        assert exc_info.value.fields == ["alpha", "zeta"]
        assert exc_info.value.entity == "Widget"
        assert exc_info.value.code == "INVALID_FIELD"

    def test_empty_map(self):
        with pytest.raises(NoFieldsToUpdateError):
            validate_partial_update(POLICY, {}, NOW)

    def test_only_stripped_fields(self):
        with pytest.raises(NoFieldsToUpdateError):
            validate_partial_update(POLICY, {"code": "A", "created_at": NOW}, NOW)

    def test_invalid_reported_before_empty(self):
        with pytest.raises(InvalidFieldError):
            validate_partial_update(POLICY, {"code": "A", "bogus": 1}, NOW)

    def test_values_are_read_only(self):
        mutation = validate_partial_update(POLICY, {"name": "x"}, NOW)

        with pytest.raises(TypeError):
            mutation.values["name"] = "y"

    def test_input_not_mutated(self):
        updates = {"code": "A", "name": "x"}

        validate_partial_update(POLICY, updates, NOW)

        assert updates == {"code": "A", "name": "x"}


KNOWN_FIELDS = ["code", "variant", "name", "colour", "weight", "created_at", "updated_at"]

field_names = st.sampled_from(KNOWN_FIELDS)


class TestPartialUpdateProperties:

    @given(st.dictionaries(field_names, st.integers(), min_size=1))
    def test_result_never_contains_stripped_fields(self, updates):
        remaining = {k for k in updates if k not in POLICY.stripped_fields}
        if not remaining:
            with pytest.raises(NoFieldsToUpdateError):
                validate_partial_update(POLICY, updates, NOW)
            return

        mutation = validate_partial_update(POLICY, updates, NOW)

        assert set(mutation.fields) == remaining
        assert not set(mutation.fields) & set(POLICY.key_fields)
        assert not set(mutation.fields) & TIMESTAMP_FIELDS
        assert mutation.values["updated_at"] == NOW

    @given(st.text(min_size=1).filter(lambda s: s not in KNOWN_FIELDS))
    def test_any_unknown_field_rejected(self, field):
        with pytest.raises(InvalidFieldError) as exc_info:
            validate_partial_update(POLICY, {field: 1, "name": "x"}, NOW)

        assert exc_info.value.fields == [field]
