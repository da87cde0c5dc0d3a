"""
Tests for the version 0 -> 1 application state upgrade.

Covers the documented upgrade scenarios plus property-based checks for key
closure, value preservation and precedence of explicitly set new keys.
"""

import copy
import warnings

import pytest
from hypothesis import given, strategies as st

from statemigrator.exceptions import MissingFieldError
from statemigrator.migration.application import APPLICATION_V0_TO_V1, upgrade_application_state_v0
from statemigrator.migration.rules import WrapInSequence
from statemigrator.migration.transitions import StateTransition
from statemigrator.schema.application import (
    APPLICATION_SCHEMA_V0,
    APPLICATION_SCHEMA_V1,
    GROUP_MEMBERSHIP_CLAIMS,
)

V0_ONLY_KEYS = set(APPLICATION_SCHEMA_V0.field_names) - set(APPLICATION_SCHEMA_V1.field_names)


class TestUpgradeScenarios:

    def test_group_membership_claims_becomes_list(self):
        assert upgrade_application_state_v0({"group_membership_claims": "All"}) == {
            "group_membership_claims": ["All"]
        }

    def test_public_client_is_renamed(self):
        result = upgrade_application_state_v0({"public_client": True})
        assert result == {"fallback_public_client_enabled": True}
        assert "public_client" not in result

    def test_explicit_fallback_value_wins(self):
        result = upgrade_application_state_v0(
            {"public_client": True, "fallback_public_client_enabled": False}
        )
        assert result == {"fallback_public_client_enabled": False}

    def test_absent_optional_claims_field_is_omitted(self):
        result = upgrade_application_state_v0({"display_name": "app"})
        assert result == {"display_name": "app"}
        assert "group_membership_claims" not in result

    def test_null_fallback_takes_legacy_value(self):
        result = upgrade_application_state_v0(
            {"public_client": True, "fallback_public_client_enabled": None}
        )
        assert result == {"fallback_public_client_enabled": True}

    def test_full_record(self, legacy_application_record):
        result = upgrade_application_state_v0(legacy_application_record)

        assert result["group_membership_claims"] == ["SecurityGroup"]
        assert result["fallback_public_client_enabled"] is False
        assert "public_client" not in result
        # Untouched fields are carried over verbatim
        for key in ("api", "optional_claims", "web", "owners", "identifier_uris", "display_name"):
            assert result[key] == legacy_application_record[key]

    def test_input_record_is_not_mutated(self, legacy_application_record):
        snapshot = copy.deepcopy(legacy_application_record)
        result = upgrade_application_state_v0(legacy_application_record)

        assert legacy_application_record == snapshot
        assert result is not legacy_application_record
        result["api"][0]["oauth2_permission_scope"][0]["value"] = "changed"
        assert legacy_application_record == snapshot

    def test_does_not_warn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            upgrade_application_state_v0({"public_client": True})

    def test_transition_applies_deprecation_warning_when_asked(self):
        with pytest.warns(DeprecationWarning, match="schema version 0"):
            APPLICATION_V0_TO_V1.apply({"public_client": True})


class TestUpgradeFailure:

    def test_missing_required_field_leaves_input_untouched(self):
        transition = StateTransition(
            from_version=0,
            to_version=1,
            rules=(
                WrapInSequence("group_membership_claims"),
                WrapInSequence("required_claims", required=True),
            ),
            name="strict_upgrade",
        )
        record = {"group_membership_claims": "All"}

        with pytest.raises(MissingFieldError) as exc_info:
            transition.apply(record)

        assert record == {"group_membership_claims": "All"}
        assert exc_info.value.field_name == "required_claims"
        assert exc_info.value.context["transition"] == "strict_upgrade"
        assert exc_info.value.context["from_version"] == 0


legacy_records = st.fixed_dictionaries(
    {},
    optional={
        "group_membership_claims": st.sampled_from(GROUP_MEMBERSHIP_CLAIMS),
        "public_client": st.one_of(st.none(), st.booleans()),
        "fallback_public_client_enabled": st.one_of(st.none(), st.booleans()),
        "display_name": st.text(min_size=1, max_size=20),
        "owners": st.lists(st.uuids().map(str), max_size=3),
        "prevent_duplicate_names": st.booleans(),
    },
)


class TestUpgradeProperties:

    @given(legacy_records)
    def test_no_version_0_only_keys_remain(self, record):
        result = upgrade_application_state_v0(record)
        assert not V0_ONLY_KEYS & set(result)

    @given(legacy_records)
    def test_every_output_key_exists_in_version_1(self, record):
        result = upgrade_application_state_v0(record)
        assert all(APPLICATION_SCHEMA_V1.has_field(key) for key in result)

    @given(legacy_records)
    def test_claims_value_preserved(self, record):
        result = upgrade_application_state_v0(record)
        if "group_membership_claims" in record:
            assert result["group_membership_claims"] == [record["group_membership_claims"]]
        else:
            assert "group_membership_claims" not in result

    @given(legacy_records)
    def test_new_key_precedence(self, record):
        result = upgrade_application_state_v0(record)
        explicit = record.get("fallback_public_client_enabled")
        if explicit is not None:
            assert result["fallback_public_client_enabled"] is explicit
        elif "public_client" in record:
            assert result["fallback_public_client_enabled"] is record["public_client"]

    @given(legacy_records)
    def test_untouched_keys_carry_over(self, record):
        result = upgrade_application_state_v0(record)
        for key in ("display_name", "owners", "prevent_duplicate_names"):
            assert result.get(key) == record.get(key)
