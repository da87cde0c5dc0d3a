"""
Declarative schema descriptor models.

A ``SchemaDescriptor`` is an immutable tree of ``FieldDescriptor`` entries for
one schema version. It only answers questions (which fields exist, which are
deprecated, which constraints relate them); it never validates values.

Cross-field constraints use absolute paths from the root block. Fields inside a
nested block are addressed as ``<block>.0.<field>``, e.g. ``web.0.homepage_url``.
"""

from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from statemigrator.exceptions import SchemaError


class ValueKind(str, Enum):
    """Kinds of values a field can hold."""

    STRING = "string"
    BOOL = "bool"
    NUMBER = "number"
    LIST = "list"    # ordered sequence
    SET = "set"      # unordered sequence
    BLOCK = "block"  # single nested descriptor

    @property
    def is_scalar(self) -> bool:
        return self in SCALAR_KINDS

    @property
    def is_sequence(self) -> bool:
        return self in (ValueKind.LIST, ValueKind.SET)


SCALAR_KINDS = frozenset({ValueKind.STRING, ValueKind.BOOL, ValueKind.NUMBER})


class Cardinality(str, Enum):
    """Whether a field must be set by the user, may be set, or is filled in remotely."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    COMPUTED = "computed"
    OPTIONAL_COMPUTED = "optional_computed"


class ConstraintKind(str, Enum):
    EXACTLY_ONE_OF = "exactly_one_of"
    CONFLICTS_WITH = "conflicts_with"
    REQUIRED_WITH = "required_with"


class FieldConstraint(BaseModel):
    """A named relation between fields, declared on the field that owns it."""

    model_config = ConfigDict(frozen=True)

    kind: ConstraintKind
    fields: Tuple[str, ...]


def exactly_one_of(*fields: str) -> FieldConstraint:
    return FieldConstraint(kind=ConstraintKind.EXACTLY_ONE_OF, fields=fields)


def conflicts_with(*fields: str) -> FieldConstraint:
    return FieldConstraint(kind=ConstraintKind.CONFLICTS_WITH, fields=fields)


def required_with(*fields: str) -> FieldConstraint:
    return FieldConstraint(kind=ConstraintKind.REQUIRED_WITH, fields=fields)


class FieldDescriptor(BaseModel):
    """
    Declaration of a single field.

    Attributes:
        name: Key under which the value is stored in a raw record
        kind: Value kind
        cardinality: Required, optional, computed or optional+computed
        elem: Element kind for scalar sequences, or a nested descriptor for
            sequences of blocks and single blocks
        min_items: Minimum number of elements for sequences
        max_items: Maximum number of elements for sequences
        default: Default value applied by the host runtime
        deprecated: Deprecation message, ``None`` when the field is current
        constraints: Cross-field relations owned by this field
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    kind: ValueKind
    cardinality: Cardinality = Cardinality.OPTIONAL
    elem: Optional[Union[ValueKind, "SchemaDescriptor"]] = None
    min_items: Optional[int] = Field(default=None, ge=0)
    max_items: Optional[int] = Field(default=None, ge=1)
    default: Any = None
    deprecated: Optional[str] = None
    constraints: Tuple[FieldConstraint, ...] = ()

    @model_validator(mode="after")
    def _check_element(self) -> "FieldDescriptor":
        if self.kind.is_scalar and self.elem is not None:
            raise SchemaError(
                f"Scalar field '{self.name}' cannot declare an element",
                error_code="SCHEMA_003",
                context={"field": self.name, "kind": self.kind.value},
            )
        if self.kind.is_sequence and self.elem is None:
            raise SchemaError(
                f"Sequence field '{self.name}' must declare an element",
                error_code="SCHEMA_003",
                context={"field": self.name, "kind": self.kind.value},
            )
        if self.kind is ValueKind.BLOCK and not isinstance(self.elem, SchemaDescriptor):
            raise SchemaError(
                f"Block field '{self.name}' must declare a nested descriptor",
                error_code="SCHEMA_003",
                context={"field": self.name},
            )
        if isinstance(self.elem, ValueKind) and not self.elem.is_scalar:
            raise SchemaError(
                f"Sequence field '{self.name}' elements must be scalars or blocks",
                error_code="SCHEMA_003",
                context={"field": self.name, "elem": self.elem.value},
            )
        return self

    @property
    def is_required(self) -> bool:
        return self.cardinality is Cardinality.REQUIRED

    @property
    def is_optional(self) -> bool:
        return self.cardinality in (Cardinality.OPTIONAL, Cardinality.OPTIONAL_COMPUTED)

    @property
    def is_computed(self) -> bool:
        return self.cardinality in (Cardinality.COMPUTED, Cardinality.OPTIONAL_COMPUTED)

    @property
    def is_deprecated(self) -> bool:
        return self.deprecated is not None

    @property
    def is_sequence(self) -> bool:
        return self.kind.is_sequence

    @property
    def nested(self) -> Optional["SchemaDescriptor"]:
        """Nested descriptor for blocks and sequences of blocks."""
        return self.elem if isinstance(self.elem, SchemaDescriptor) else None


class SchemaDescriptor(BaseModel):
    """
    Ordered set of field declarations.

    Root descriptors carry a ``version``; nested blocks leave it ``None``.
    Constraint targets are checked against the root when the root is built.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Optional[int] = Field(default=None, ge=0)
    fields: Tuple[FieldDescriptor, ...] = ()

    @model_validator(mode="after")
    def _check_fields(self) -> "SchemaDescriptor":
        seen: Set[str] = set()
        for descriptor in self.fields:
            if descriptor.name in seen:
                raise SchemaError(
                    f"Duplicate field '{descriptor.name}' in schema",
                    error_code="SCHEMA_001",
                    context={"field": descriptor.name, "version": self.version},
                )
            seen.add(descriptor.name)

        if self.version is not None:
            for owner, constraint in self._iter_constraints():
                for target in constraint.fields:
                    if target.split(".", 1)[0] not in seen:
                        raise SchemaError(
                            f"Constraint on '{owner}' references unknown field '{target}'",
                            error_code="SCHEMA_002",
                            context={
                                "field": owner,
                                "target": target,
                                "constraint": constraint.kind.value,
                                "version": self.version,
                            },
                        )
        return self

    # --- Queries ---

    def field(self, name: str) -> Optional[FieldDescriptor]:
        """Look up a field by key or by ``block.0.field`` path."""
        head, _, rest = name.partition(".")
        for descriptor in self.fields:
            if descriptor.name == head:
                break
        else:
            return None

        if not rest:
            return descriptor
        nested = descriptor.nested
        if nested is None:
            return None
        index, _, tail = rest.partition(".")
        if not index.isdigit() or not tail:
            return None
        return nested.field(tail)

    def has_field(self, name: str) -> bool:
        return self.field(name) is not None

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(descriptor.name for descriptor in self.fields)

    def deprecated_fields(self) -> Dict[str, str]:
        """Top-level deprecated field names mapped to their messages."""
        return {
            descriptor.name: descriptor.deprecated
            for descriptor in self.fields
            if descriptor.deprecated is not None
        }

    def required_fields(self) -> Tuple[str, ...]:
        return tuple(descriptor.name for descriptor in self.fields if descriptor.is_required)

    def walk(self, prefix: str = "") -> Iterator[Tuple[str, FieldDescriptor]]:
        """Yield ``(path, descriptor)`` for every field in the tree, depth first."""
        for descriptor in self.fields:
            path = f"{prefix}{descriptor.name}"
            yield path, descriptor
            nested = descriptor.nested
            if nested is not None:
                yield from nested.walk(f"{path}.0.")

    def constraints(self) -> Tuple[FieldConstraint, ...]:
        """
        All cross-field relations in the tree, owner folded in.

        A ``conflicts_with`` declared on ``a`` listing ``b`` and the mirror
        declaration on ``b`` collapse into one relation over ``(a, b)``.
        """
        seen: Set[Tuple[ConstraintKind, frozenset]] = set()
        result: List[FieldConstraint] = []
        for owner, constraint in self._iter_constraints():
            members = tuple(dict.fromkeys((owner,) + constraint.fields))
            key = (constraint.kind, frozenset(members))
            if key in seen:
                continue
            seen.add(key)
            result.append(FieldConstraint(kind=constraint.kind, fields=members))
        return tuple(result)

    def conflicts_of(self, name: str) -> Tuple[str, ...]:
        """Paths that must not be set together with ``name``."""
        conflicts: List[str] = []
        for constraint in self.constraints():
            if constraint.kind is ConstraintKind.CONFLICTS_WITH and name in constraint.fields:
                conflicts.extend(other for other in constraint.fields if other != name)
        return tuple(dict.fromkeys(conflicts))

    def depth(self) -> int:
        """Nesting depth of records shaped by this descriptor (root counts as 1)."""
        deepest = 0
        for descriptor in self.fields:
            nested = descriptor.nested
            if nested is not None:
                deepest = max(deepest, nested.depth())
            elif descriptor.is_sequence:
                deepest = max(deepest, 1)
        return 1 + deepest

    def evolve(
        self,
        version: int,
        replace: Iterable[FieldDescriptor] = (),
        remove: Iterable[str] = (),
        add: Iterable[FieldDescriptor] = (),
    ) -> "SchemaDescriptor":
        """
        Declare the next schema version from this one.

        Replaced fields keep their position, removed fields are dropped and
        added fields are appended. The result is a new descriptor.
        """
        replacements: Mapping[str, FieldDescriptor] = {d.name: d for d in replace}
        removed = set(remove)

        unknown = (set(replacements) | removed) - set(self.field_names)
        if unknown:
            raise SchemaError(
                f"Cannot evolve unknown fields: {', '.join(sorted(unknown))}",
                error_code="SCHEMA_002",
                context={"fields": sorted(unknown), "version": version},
            )

        fields = [
            replacements.get(descriptor.name, descriptor)
            for descriptor in self.fields
            if descriptor.name not in removed
        ]
        fields.extend(add)
        return SchemaDescriptor(version=version, fields=tuple(fields))

    def _iter_constraints(self, prefix: str = "") -> Iterator[Tuple[str, FieldConstraint]]:
        for descriptor in self.fields:
            path = f"{prefix}{descriptor.name}"
            for constraint in descriptor.constraints:
                yield path, constraint
            nested = descriptor.nested
            if nested is not None:
                yield from nested._iter_constraints(f"{path}.0.")


FieldDescriptor.model_rebuild()
SchemaDescriptor.model_rebuild()


__all__ = [
    "ValueKind",
    "Cardinality",
    "ConstraintKind",
    "FieldConstraint",
    "FieldDescriptor",
    "SchemaDescriptor",
    "exactly_one_of",
    "conflicts_with",
    "required_with",
]
