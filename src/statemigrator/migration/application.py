"""Upgrades for stored ``application`` resource state."""

from statemigrator.migration.records import RawRecord
from statemigrator.migration.rules import WrapInSequence, conditional_rename
from statemigrator.migration.transitions import StateTransition
from statemigrator.schema.application import APPLICATION_SCHEMA_V0, APPLICATION_SCHEMA_V1

RESOURCE_TYPE = "application"

APPLICATION_V0_TO_V1 = StateTransition(
    from_version=0,
    to_version=1,
    rules=(
        # Optional at v0, so an absent value stays absent
        WrapInSequence("group_membership_claims", required=False),
        *conditional_rename("public_client", "fallback_public_client_enabled"),
    ),
    name="upgrade_application_v0_to_v1",
    source_schema=APPLICATION_SCHEMA_V0,
    target_schema=APPLICATION_SCHEMA_V1,
    deprecation_message=(
        "Application state written under schema version 0 is being upgraded to version 1: "
        "`group_membership_claims` becomes a list and `public_client` is renamed to "
        "`fallback_public_client_enabled`."
    ),
)

APPLICATION_TRANSITIONS = (APPLICATION_V0_TO_V1,)


def upgrade_application_state_v0(record: RawRecord) -> RawRecord:
    """
    Upgrade a version 0 application record to version 1.

    The input record is left untouched. No deprecation warning is issued;
    callers that want one go through ``StateMigrator``.

    Raises:
        MissingFieldError: If a field required at version 0 is absent
    """
    return APPLICATION_V0_TO_V1.apply(record, emit_deprecation_warnings=False)


__all__ = [
    "RESOURCE_TYPE",
    "APPLICATION_V0_TO_V1",
    "APPLICATION_TRANSITIONS",
    "upgrade_application_state_v0",
]
