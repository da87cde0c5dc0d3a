"""Declarative schema descriptors, one immutable tree per schema version."""

from statemigrator.schema.descriptor import (
    Cardinality,
    ConstraintKind,
    FieldConstraint,
    FieldDescriptor,
    SchemaDescriptor,
    ValueKind,
    conflicts_with,
    exactly_one_of,
    required_with,
)
from statemigrator.schema.application import (
    APPLICATION_SCHEMA_V0,
    APPLICATION_SCHEMA_V1,
    GROUP_MEMBERSHIP_CLAIMS,
)

__all__ = [
    "Cardinality",
    "ConstraintKind",
    "FieldConstraint",
    "FieldDescriptor",
    "SchemaDescriptor",
    "ValueKind",
    "conflicts_with",
    "exactly_one_of",
    "required_with",
    "APPLICATION_SCHEMA_V0",
    "APPLICATION_SCHEMA_V1",
    "GROUP_MEMBERSHIP_CLAIMS",
]
