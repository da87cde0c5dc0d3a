#!/usr/bin/env python3
"""
Application state upgrade demonstration.

Shows how a host runtime upgrades a stored version 0 ``application`` record:

1. Direct use of ``upgrade_application_state_v0``
2. Orchestrated upgrades with ``StateMigrator`` and the migration report
3. Handling ``MissingFieldError`` for corrupted state

Usage:
    python upgrade_example.py [state.json]
"""

import json
import sys
from pathlib import Path

from statemigrator import configure_console_logging, logger, reset_logging
from statemigrator.config import MigratorSettings
from statemigrator.exceptions import MissingFieldError
from statemigrator.migration import (
    StateMigrator,
    StateTransition,
    WrapInSequence,
    create_default_migrator,
    upgrade_application_state_v0,
)

SAMPLE_STATE = {
    "display_name": "billing-api",
    "group_membership_claims": "SecurityGroup",
    "public_client": True,
    "owners": ["11111111-1111-1111-1111-111111111111"],
}


def demonstrate_direct_upgrade(record) -> None:
    logger.info("=== Direct upgrade ===")
    upgraded = upgrade_application_state_v0(record)
    logger.info(f"v0 state: {json.dumps(record, sort_keys=True)}")
    logger.info(f"v1 state: {json.dumps(upgraded, sort_keys=True)}")


def demonstrate_reported_upgrade(record) -> None:
    logger.info("=== Upgrade with report ===")
    migrator = create_default_migrator(MigratorSettings(emit_deprecation_warnings=False))
    _, report = migrator.migrate(record, 0, 1)
    logger.info(json.dumps(report.to_dict(), indent=2, default=str))


def demonstrate_corrupted_state() -> None:
    logger.info("=== Corrupted state ===")
    strict = StateMigrator(
        "application",
        [StateTransition(from_version=0, to_version=1, rules=(WrapInSequence("group_membership_claims", required=True),))],
    )
    try:
        strict.migrate({"display_name": "hand-edited"}, 0, 1)
    except MissingFieldError as e:
        logger.error(f"Refusing to persist state: {e}")


def main() -> int:
    reset_logging()
    configure_console_logging(level="INFO", destination=sys.stdout, colorize=False)

    record = SAMPLE_STATE
    if len(sys.argv) > 1:
        record = json.loads(Path(sys.argv[1]).read_text())

    demonstrate_direct_upgrade(record)
    demonstrate_reported_upgrade(record)
    demonstrate_corrupted_state()
    return 0


if __name__ == "__main__":
    sys.exit(main())
