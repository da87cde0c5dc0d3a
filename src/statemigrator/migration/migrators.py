"""
Migration orchestration for stored resource state.

``StateMigrator`` keeps one ``StateTransition`` per adjacent version step and
chains them to upgrade a record from any registered version to a later one,
never skipping a step. Every run produces a ``MigrationReport`` for audit
trails.

Usage Examples:
    >>> migrator = create_default_migrator()
    >>> upgraded, report = migrator.migrate({"public_client": True}, 0, 1)
    >>> upgraded
    {'fallback_public_client_enabled': True}
    >>> report.applied_migrations
    ['upgrade_application_v0_to_v1']
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from statemigrator.config import MigratorSettings
from statemigrator.exceptions import MissingFieldError, VersionError
from statemigrator.migration.application import APPLICATION_TRANSITIONS, RESOURCE_TYPE
from statemigrator.migration.records import RawRecord, copy_record, is_raw_record, record_depth
from statemigrator.migration.transitions import StateTransition, audit_transition
from statemigrator.migration.versions import parse_schema_version


class MigrationReport:
    """
    Audit trail for one record migration.

    Attributes:
        from_version: Source schema version
        to_version: Target schema version
        timestamp: When the migration started
        applied_migrations: Names of the transitions applied, in order
        warnings: Warning messages generated during migration
        errors: Error messages recorded before a failure was raised
        metadata: Additional context for debugging
        execution_time_ms: Total execution time in milliseconds
        config_changes: Per-key changes keyed ``<transition>.<key>``
    """

    def __init__(
        self,
        from_version: int,
        to_version: int,
        timestamp: Optional[datetime] = None
    ) -> None:
        self.from_version = from_version
        self.to_version = to_version
        self.timestamp = timestamp or datetime.now()
        self.applied_migrations: List[str] = []
        self.warnings: List[str] = []
        self.errors: List[str] = []
        self.metadata: Dict[str, Any] = {}
        self.execution_time_ms: Optional[float] = None
        self.config_changes: Dict[str, Dict[str, Any]] = {}

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the report to a plain dictionary for logging or serialization.

        Example:
            >>> report = MigrationReport(0, 1)
            >>> report.to_dict()['migration_path']
            'v0 -> v1'
        """
        return {
            "migration_summary": (
                f"Successfully migrated from v{self.from_version} to v{self.to_version}"
                if self.success else
                f"Migration from v{self.from_version} to v{self.to_version} failed"
            ),
            "from_version": self.from_version,
            "to_version": self.to_version,
            "timestamp": self.timestamp.isoformat(),
            "applied_migrations": list(self.applied_migrations),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "metadata": dict(self.metadata),
            "execution_time_ms": self.execution_time_ms,
            "config_changes": dict(self.config_changes),
            "migration_path": " -> ".join(
                f"v{version}" for version in range(self.from_version, self.to_version + 1)
            ) if self.to_version >= self.from_version else f"v{self.from_version}",
            "success": self.success,
            "warning_count": len(self.warnings),
            "error_count": len(self.errors),
        }

    def add_warning(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        entry = _with_context(message, context)
        self.warnings.append(entry)
        logger.warning(f"Migration warning: {entry}")

    def add_error(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        entry = _with_context(message, context)
        self.errors.append(entry)
        logger.error(f"Migration error: {entry}")

    def set_execution_time(self, start_time: datetime, end_time: Optional[datetime] = None) -> None:
        end_time = end_time or datetime.now()
        self.execution_time_ms = (end_time - start_time).total_seconds() * 1000

    def add_config_change(self, field_path: str, old_value: Any, new_value: Any, change_type: str) -> None:
        """
        Record one key change.

        Args:
            field_path: ``<transition>.<key>``
            old_value: Value before the step (``None`` when added)
            new_value: Value after the step (``None`` when removed)
            change_type: ``added``, ``removed`` or ``modified``
        """
        self.config_changes[field_path] = {
            "old_value": old_value,
            "new_value": new_value,
            "change_type": change_type,
        }


def _with_context(message: str, context: Optional[Dict[str, Any]]) -> str:
    if not context:
        return message
    context_str = ", ".join(f"{k}={v}" for k, v in context.items())
    return f"{message} [Context: {context_str}]"


class StateMigrator:
    """
    Registry of adjacent transitions for one resource type.

    Transitions are keyed by their source version. After registration the
    registry is only read, so one migrator can serve many independent
    ``migrate`` calls.

    Usage Examples:
        >>> migrator = StateMigrator("application")
        >>> migrator.register_transition(APPLICATION_V0_TO_V1)
        >>> [t.name for t in migrator.get_migration_path(0, 1)]
        ['upgrade_application_v0_to_v1']
    """

    def __init__(
        self,
        resource_type: str,
        transitions: Iterable[StateTransition] = (),
        settings: Optional[MigratorSettings] = None,
    ) -> None:
        self.resource_type = resource_type
        self.settings = settings or MigratorSettings()
        self._registry: Dict[int, StateTransition] = {}

        for transition in transitions:
            self.register_transition(transition)

        logger.debug(
            f"StateMigrator for '{resource_type}' initialized with {len(self._registry)} transitions"
        )

    @property
    def transitions(self) -> Tuple[StateTransition, ...]:
        return tuple(self._registry[version] for version in sorted(self._registry))

    def register_transition(self, transition: StateTransition) -> None:
        """
        Register the transition for ``transition.from_version``.

        Rule tables that disagree with their declared schemas are still
        registered; each problem is logged as a warning.
        """
        if not isinstance(transition, StateTransition):
            raise TypeError(f"Expected StateTransition, got {type(transition).__name__}")

        if transition.from_version in self._registry:
            logger.warning(
                f"Overriding existing {self.resource_type} transition "
                f"v{transition.from_version} -> v{transition.to_version}"
            )

        for problem in audit_transition(transition):
            logger.warning(f"Transition {transition.name}: {problem}")

        self._registry[transition.from_version] = transition
        logger.debug(f"Registered transition: {transition.name}")

    def get_migration_path(self, from_version: Any, to_version: Any) -> List[StateTransition]:
        """
        Transitions to apply, in order, to go from ``from_version`` to ``to_version``.

        Raises:
            VersionError: On downgrades or when any adjacent step is missing
        """
        source = parse_schema_version(from_version)
        target = parse_schema_version(to_version)

        if target < source:
            raise VersionError(
                f"Cannot downgrade {self.resource_type} state from v{source} to v{target}",
                error_code="VERSION_006",
                context={"from_version": source, "to_version": target},
            )

        path = []
        for version in range(source, target):
            transition = self._registry.get(version)
            if transition is None:
                logger.error(f"No migration path found: v{source} -> v{target}")
                raise VersionError(
                    f"No migration path available from v{source} to v{target}",
                    error_code="VERSION_005",
                    context={
                        "from_version": source,
                        "to_version": target,
                        "missing_step": f"v{version} -> v{version + 1}",
                        "available_steps": sorted(self._registry),
                    },
                )
            path.append(transition)
        return path

    def validate_migration(self, from_version: Any, to_version: Any) -> Tuple[bool, str]:
        """
        Check whether a migration is possible without running it.

        Returns:
            (is_possible, detailed_message)
        """
        try:
            path = self.get_migration_path(from_version, to_version)
        except VersionError as e:
            return False, f"Migration not possible: {e.message}"

        if not path:
            return True, "No migration needed - versions are identical"
        names = " -> ".join(transition.name for transition in path)
        return True, f"Migration path available: {names} ({len(path)} steps)"

    def migrate(
        self,
        record: RawRecord,
        from_version: Any,
        to_version: Any,
    ) -> Tuple[RawRecord, MigrationReport]:
        """
        Upgrade one record and report what changed.

        The caller's record is never mutated. Either the fully upgraded record
        is returned or an exception is raised.

        Raises:
            MissingFieldError: If the stored record lacks a required field
            VersionError: If the input or versions are invalid, no path exists,
                or a transition fails unexpectedly
        """
        start_time = datetime.now()

        if not is_raw_record(record):
            raise VersionError(
                f"Record must be a dictionary with string keys, got {type(record).__name__}",
                error_code="VERSION_001",
                context={"resource_type": self.resource_type, "input_type": type(record).__name__},
            )

        source = parse_schema_version(from_version)
        target = parse_schema_version(to_version)
        report = MigrationReport(source, target, start_time)
        report.metadata["resource_type"] = self.resource_type
        report.metadata["record_depth"] = record_depth(record)

        logger.info(f"Starting {self.resource_type} state migration: v{source} -> v{target}")

        if source == target:
            report.add_warning("No migration needed - versions are identical")
            report.set_execution_time(start_time)
            return copy_record(record), report

        path = self.get_migration_path(source, target)

        current = record
        for transition in path:
            try:
                migrated = transition.apply(
                    current,
                    emit_deprecation_warnings=self.settings.emit_deprecation_warnings,
                )
            except MissingFieldError as e:
                report.add_error(e.message, {"transition": transition.name})
                report.set_execution_time(start_time)
                raise
            except Exception as e:
                error_msg = f"Migration step failed: {transition.name}: {e}"
                report.add_error(error_msg, {"exception_type": type(e).__name__})
                report.set_execution_time(start_time)
                raise VersionError(
                    error_msg,
                    error_code="VERSION_002",
                    context={
                        "transition": transition.name,
                        "resource_type": self.resource_type,
                        "original_error": str(e),
                    },
                ) from e

            report.applied_migrations.append(transition.name)
            if self.settings.track_changes:
                self._track_changes(current, migrated, report, transition.name)
            current = migrated

        report.set_execution_time(start_time)
        logger.info(
            f"{self.resource_type} state migrated v{source} -> v{target} "
            f"in {report.execution_time_ms:.2f}ms"
        )
        return current, report

    def _track_changes(
        self,
        old_record: RawRecord,
        new_record: RawRecord,
        report: MigrationReport,
        step: str,
    ) -> None:
        old_keys = set(old_record)
        new_keys = set(new_record)

        for key in sorted(new_keys - old_keys):
            report.add_config_change(f"{step}.{key}", None, new_record[key], "added")
        for key in sorted(old_keys - new_keys):
            report.add_config_change(f"{step}.{key}", old_record[key], None, "removed")
        for key in sorted(old_keys & new_keys):
            if old_record[key] != new_record[key]:
                report.add_config_change(f"{step}.{key}", old_record[key], new_record[key], "modified")


def migrate_records(
    migrator: StateMigrator,
    records: Iterable[RawRecord],
    from_version: Any,
    to_version: Any,
) -> List[Tuple[RawRecord, MigrationReport]]:
    """
    Upgrade many records independently.

    Stops at the first failing record and re-raises its error; records
    upgraded before it are not returned.
    """
    results = []
    for index, record in enumerate(records):
        try:
            results.append(migrator.migrate(record, from_version, to_version))
        except (MissingFieldError, VersionError) as e:
            raise e.with_context({"record_index": index})
    logger.debug(f"Migrated {len(results)} {migrator.resource_type} records")
    return results


def create_default_migrator(settings: Optional[MigratorSettings] = None) -> StateMigrator:
    """Migrator pre-loaded with the application resource transitions."""
    return StateMigrator(RESOURCE_TYPE, APPLICATION_TRANSITIONS, settings=settings)


__all__ = [
    "MigrationReport",
    "StateMigrator",
    "migrate_records",
    "create_default_migrator",
]
