"""
Field transformation rules.

Each rule is one reshaping step applied in place to a working copy of a raw
record. Rules run in the order a transition declares them, so a rule may read
keys written by an earlier rule of the same transition.

The set of rule kinds is closed:

- ``RenameField``: move a value to a new key, overwriting it
- ``WrapInSequence``: turn a scalar into a single-element list
- ``ConditionalCopy``: copy a value to a new key only when the new key is unset
- ``DeleteField``: drop a superseded key

``conditional_rename`` combines the last two into the usual "legacy key
renamed, explicit new value wins" pattern.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

from loguru import logger

from statemigrator.exceptions import MissingFieldError
from statemigrator.migration.records import RawRecord, is_set


class FieldTransformRule(ABC):
    """Base class for one migration action."""

    @abstractmethod
    def apply(self, record: RawRecord) -> None:
        """Apply the rule to ``record`` in place."""

    @abstractmethod
    def describe(self) -> str:
        """Human readable one-liner used in logs and reports."""

    @property
    def reads(self) -> Tuple[str, ...]:
        """Keys whose value the rule consumes."""
        return ()

    @property
    def writes(self) -> Tuple[str, ...]:
        """Keys the rule may set."""
        return ()

    @property
    def removes(self) -> Tuple[str, ...]:
        """Keys the rule guarantees to be absent afterwards."""
        return ()

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class RenameField(FieldTransformRule):
    """
    Move ``old`` to ``new`` unconditionally.

    An absent ``old`` key is a no-op unless ``required`` is set.
    """

    old: str
    new: str
    required: bool = False

    def apply(self, record: RawRecord) -> None:
        if self.old not in record:
            if self.required:
                raise MissingFieldError(self.old, {"rule": self.describe()})
            logger.debug(f"Skipping rename of absent field `{self.old}`")
            return

        logger.debug(f"Migrating `{self.old}` to `{self.new}` (new attribute name)")
        record[self.new] = record.pop(self.old)

    def describe(self) -> str:
        return f"rename {self.old} -> {self.new}"

    @property
    def reads(self) -> Tuple[str, ...]:
        return (self.old,)

    @property
    def writes(self) -> Tuple[str, ...]:
        return (self.new,)

    @property
    def removes(self) -> Tuple[str, ...]:
        return (self.old,)


@dataclass(frozen=True)
class WrapInSequence(FieldTransformRule):
    """
    Replace a scalar value with a one-element list holding it.

    ``None`` counts as absent. Absent optional fields are left as they are;
    absent required fields raise ``MissingFieldError``.
    """

    field: str
    required: bool = False

    def apply(self, record: RawRecord) -> None:
        if not is_set(record, self.field):
            if self.required:
                raise MissingFieldError(self.field, {"rule": self.describe()})
            logger.debug(f"Optional field `{self.field}` is unset, nothing to wrap")
            return

        logger.debug(f"Migrating `{self.field}` from scalar to list format")
        record[self.field] = [record[self.field]]

    def describe(self) -> str:
        return f"wrap {self.field} in a list"

    @property
    def reads(self) -> Tuple[str, ...]:
        return (self.field,)

    @property
    def writes(self) -> Tuple[str, ...]:
        return (self.field,)


@dataclass(frozen=True)
class ConditionalCopy(FieldTransformRule):
    """
    Copy ``source`` into ``target`` unless ``target`` already holds a value.

    An explicit, non-null ``target`` always wins over the legacy ``source``.
    Nothing is written when ``source`` is absent.
    """

    source: str
    target: str

    def apply(self, record: RawRecord) -> None:
        if is_set(record, self.target):
            logger.debug(f"Keeping explicit `{self.target}`, ignoring legacy `{self.source}`")
            return
        if self.source not in record:
            logger.debug(f"Legacy field `{self.source}` is absent, nothing to copy")
            return

        logger.debug(f"Migrating `{self.source}` to `{self.target}` (new attribute name)")
        record[self.target] = record[self.source]

    def describe(self) -> str:
        return f"copy {self.source} -> {self.target} if unset"

    @property
    def reads(self) -> Tuple[str, ...]:
        return (self.source, self.target)

    @property
    def writes(self) -> Tuple[str, ...]:
        return (self.target,)


@dataclass(frozen=True)
class DeleteField(FieldTransformRule):
    """Remove ``field`` if present."""

    field: str

    def apply(self, record: RawRecord) -> None:
        if record.pop(self.field, None) is not None:
            logger.debug(f"Removed deprecated field `{self.field}`")

    def describe(self) -> str:
        return f"delete {self.field}"

    @property
    def removes(self) -> Tuple[str, ...]:
        return (self.field,)


def conditional_rename(old: str, new: str) -> Tuple[FieldTransformRule, ...]:
    """Rules renaming ``old`` to ``new`` where an explicit ``new`` value wins."""
    return (ConditionalCopy(old, new), DeleteField(old))


__all__ = [
    "FieldTransformRule",
    "RenameField",
    "WrapInSequence",
    "ConditionalCopy",
    "DeleteField",
    "conditional_rename",
]
