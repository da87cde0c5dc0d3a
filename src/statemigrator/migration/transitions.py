"""
State transitions between adjacent schema versions.

A ``StateTransition`` is a static rule table for one ``N-1 -> N`` upgrade. It
applies its rules in order to a deep copy of the record, so a failing rule
never leaves a half-migrated record behind and the caller's record is never
mutated.
"""

import warnings
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from loguru import logger

from statemigrator.exceptions import MissingFieldError, VersionError
from statemigrator.migration.records import RawRecord, copy_record
from statemigrator.migration.rules import FieldTransformRule, WrapInSequence
from statemigrator.migration.versions import is_adjacent, parse_schema_version
from statemigrator.schema.descriptor import SchemaDescriptor


@dataclass(frozen=True)
class StateTransition:
    """
    Ordered rule table upgrading records from ``from_version`` to ``to_version``.

    Attributes:
        from_version: Version the input records conform to
        to_version: Version produced; must be ``from_version + 1``
        rules: Rules applied in declared order
        name: Identifier used in logs and migration reports
        source_schema: Descriptor of ``from_version`` (optional, used by audits)
        target_schema: Descriptor of ``to_version`` (optional, used by audits)
        deprecation_message: Warning issued when a legacy record is upgraded
    """

    from_version: int
    to_version: int
    rules: Tuple[FieldTransformRule, ...]
    name: str = ""
    source_schema: Optional[SchemaDescriptor] = None
    target_schema: Optional[SchemaDescriptor] = None
    deprecation_message: Optional[str] = None

    def __post_init__(self) -> None:
        from_version = parse_schema_version(self.from_version)
        to_version = parse_schema_version(self.to_version)
        if not is_adjacent(from_version, to_version):
            raise VersionError(
                f"Transitions must connect adjacent versions, got {from_version} -> {to_version}",
                error_code="VERSION_003",
                context={"from_version": from_version, "to_version": to_version},
            )

        object.__setattr__(self, "from_version", from_version)
        object.__setattr__(self, "to_version", to_version)
        object.__setattr__(self, "rules", tuple(self.rules))
        if not self.name:
            object.__setattr__(self, "name", f"upgrade_v{from_version}_to_v{to_version}")

    def apply(self, record: RawRecord, emit_deprecation_warnings: bool = True) -> RawRecord:
        """
        Upgrade ``record`` and return the new record.

        Args:
            record: Raw record conforming to ``from_version``
            emit_deprecation_warnings: Issue ``deprecation_message`` if set

        Returns:
            A new raw record conforming to ``to_version``

        Raises:
            MissingFieldError: If a field a rule requires is absent
        """
        logger.debug(f"Executing migration: v{self.from_version} -> v{self.to_version} ({self.name})")

        if emit_deprecation_warnings and self.deprecation_message:
            warnings.warn(self.deprecation_message, DeprecationWarning, stacklevel=2)

        working = copy_record(record)
        for rule in self.rules:
            try:
                rule.apply(working)
            except MissingFieldError as e:
                logger.error(f"Migration {self.name} aborted: {e.message}")
                raise e.with_context({
                    "transition": self.name,
                    "from_version": self.from_version,
                    "to_version": self.to_version,
                })
        return working

    __call__ = apply


def audit_transition(transition: StateTransition) -> List[str]:
    """
    Cross-check a rule table against the declared source and target schemas.

    This is a static check of the table itself, run when a transition is
    registered; it never looks at record values.

    Returns:
        Problems found, empty when the table is consistent or no schemas are set
    """
    source = transition.source_schema
    target = transition.target_schema
    problems: List[str] = []
    if source is None or target is None:
        return problems

    written: Set[str] = set()
    removed: Set[str] = set()
    for rule in transition.rules:
        for key in rule.reads:
            if key not in written and not source.has_field(key) and not target.has_field(key):
                problems.append(f"{rule.describe()}: `{key}` is not declared in v{source.version}")
        for key in rule.writes:
            if not target.has_field(key):
                problems.append(f"{rule.describe()}: `{key}` is not declared in v{target.version}")
        if isinstance(rule, WrapInSequence):
            problems.extend(_audit_wrap(rule, source, target))
        written.update(rule.writes)
        removed.update(rule.removes)

    for key in _source_only_keys(source, target):
        if key not in removed:
            problems.append(f"`{key}` exists only in v{source.version} but no rule removes it")

    return problems


def _audit_wrap(rule: WrapInSequence, source: SchemaDescriptor, target: SchemaDescriptor) -> List[str]:
    problems = []
    before = source.field(rule.field)
    after = target.field(rule.field)
    if before is not None:
        if not before.kind.is_scalar:
            problems.append(f"{rule.describe()}: `{rule.field}` is not a scalar in v{source.version}")
        if before.is_required != rule.required:
            problems.append(
                f"{rule.describe()}: required={rule.required} disagrees with "
                f"{before.cardinality.value} cardinality in v{source.version}"
            )
    if after is not None and not after.is_sequence:
        problems.append(f"{rule.describe()}: `{rule.field}` is not a sequence in v{target.version}")
    return problems


def _source_only_keys(source: SchemaDescriptor, target: SchemaDescriptor) -> Sequence[str]:
    target_names = set(target.field_names)
    return [name for name in source.field_names if name not in target_names]


__all__ = ["StateTransition", "audit_transition"]
