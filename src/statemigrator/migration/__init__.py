"""
Schema-versioned upgrades of raw resource state.

Public entry points:
- ``upgrade_application_state_v0``: the v0 -> v1 application upgrade
- ``StateMigrator`` / ``create_default_migrator``: chained upgrades with reports
- Rule kinds and ``StateTransition`` for declaring new transitions
"""

from statemigrator.migration.application import (
    APPLICATION_TRANSITIONS,
    APPLICATION_V0_TO_V1,
    RESOURCE_TYPE,
    upgrade_application_state_v0,
)
from statemigrator.migration.migrators import (
    MigrationReport,
    StateMigrator,
    create_default_migrator,
    migrate_records,
)
from statemigrator.migration.records import RawRecord, RawValue, copy_record, is_raw_record
from statemigrator.migration.rules import (
    ConditionalCopy,
    DeleteField,
    FieldTransformRule,
    RenameField,
    WrapInSequence,
    conditional_rename,
)
from statemigrator.migration.transitions import StateTransition, audit_transition
from statemigrator.migration.versions import (
    CURRENT_VERSION,
    SUPPORTED_VERSIONS,
    compare_versions,
    is_adjacent,
    is_current_version,
    is_supported_version,
    parse_schema_version,
)

__all__ = [
    "APPLICATION_TRANSITIONS",
    "APPLICATION_V0_TO_V1",
    "RESOURCE_TYPE",
    "upgrade_application_state_v0",
    "MigrationReport",
    "StateMigrator",
    "create_default_migrator",
    "migrate_records",
    "RawRecord",
    "RawValue",
    "copy_record",
    "is_raw_record",
    "ConditionalCopy",
    "DeleteField",
    "FieldTransformRule",
    "RenameField",
    "WrapInSequence",
    "conditional_rename",
    "StateTransition",
    "audit_transition",
    "CURRENT_VERSION",
    "SUPPORTED_VERSIONS",
    "compare_versions",
    "is_adjacent",
    "is_current_version",
    "is_supported_version",
    "parse_schema_version",
]
