"""Tests for the declarative schema descriptor models."""

import pytest

from statemigrator.exceptions import SchemaError
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


def _string(name, **kwargs):
    return FieldDescriptor(name=name, kind=ValueKind.STRING, **kwargs)


@pytest.fixture
def sample_schema():
    return SchemaDescriptor(
        version=3,
        fields=(
            _string("title", cardinality=Cardinality.REQUIRED),
            _string("label", deprecated="use title", constraints=(conflicts_with("title"),)),
            _string("token", constraints=(required_with("secret"),)),
            _string("secret"),
            FieldDescriptor(
                name="settings",
                kind=ValueKind.BLOCK,
                elem=SchemaDescriptor(fields=(
                    _string("mode", constraints=(conflicts_with("label"),)),
                    FieldDescriptor(name="tags", kind=ValueKind.SET, elem=ValueKind.STRING),
                )),
            ),
        ),
    )


class TestFieldDescriptor:

    def test_defaults(self):
        descriptor = _string("name")
        assert descriptor.cardinality is Cardinality.OPTIONAL
        assert descriptor.is_optional and not descriptor.is_required and not descriptor.is_computed
        assert not descriptor.is_deprecated
        assert descriptor.nested is None

    def test_optional_computed_is_both(self):
        descriptor = _string("id", cardinality=Cardinality.OPTIONAL_COMPUTED)
        assert descriptor.is_optional and descriptor.is_computed

    def test_scalar_with_element_rejected(self):
        with pytest.raises(SchemaError) as exc_info:
            FieldDescriptor(name="x", kind=ValueKind.STRING, elem=ValueKind.STRING)
        assert exc_info.value.error_code == "SCHEMA_003"

    def test_sequence_without_element_rejected(self):
        with pytest.raises(SchemaError):
            FieldDescriptor(name="x", kind=ValueKind.LIST)

    def test_block_requires_nested_descriptor(self):
        with pytest.raises(SchemaError):
            FieldDescriptor(name="x", kind=ValueKind.BLOCK, elem=ValueKind.STRING)

    def test_sequence_of_sequences_rejected(self):
        with pytest.raises(SchemaError):
            FieldDescriptor(name="x", kind=ValueKind.LIST, elem=ValueKind.SET)

    def test_is_frozen(self):
        descriptor = _string("name")
        with pytest.raises(Exception):
            descriptor.name = "other"


class TestSchemaDescriptorQueries:

    def test_field_lookup(self, sample_schema):
        assert sample_schema.field("title").is_required
        assert sample_schema.field("missing") is None
        assert sample_schema.has_field("secret")

    def test_nested_path_lookup(self, sample_schema):
        assert sample_schema.field("settings.0.mode").name == "mode"
        assert sample_schema.field("settings.0.missing") is None
        assert sample_schema.field("settings.x.mode") is None
        assert sample_schema.field("title.0.mode") is None

    def test_field_names_keep_declaration_order(self, sample_schema):
        assert sample_schema.field_names == ("title", "label", "token", "secret", "settings")

    def test_deprecated_and_required(self, sample_schema):
        assert sample_schema.deprecated_fields() == {"label": "use title"}
        assert sample_schema.required_fields() == ("title",)

    def test_walk_yields_nested_paths(self, sample_schema):
        paths = [path for path, _ in sample_schema.walk()]
        assert paths == [
            "title", "label", "token", "secret", "settings", "settings.0.mode", "settings.0.tags",
        ]

    def test_constraints_fold_owner(self, sample_schema):
        assert sample_schema.constraints() == (
            FieldConstraint(kind=ConstraintKind.CONFLICTS_WITH, fields=("label", "title")),
            FieldConstraint(kind=ConstraintKind.REQUIRED_WITH, fields=("token", "secret")),
            FieldConstraint(kind=ConstraintKind.CONFLICTS_WITH, fields=("settings.0.mode", "label")),
        )

    def test_mirrored_constraints_are_deduplicated(self):
        schema = SchemaDescriptor(
            version=0,
            fields=(
                _string("a", constraints=(conflicts_with("b"),)),
                _string("b", constraints=(conflicts_with("a"),)),
                _string("c", constraints=(exactly_one_of("c", "d"),)),
                _string("d", constraints=(exactly_one_of("c", "d"),)),
            ),
        )
        kinds = [constraint.kind for constraint in schema.constraints()]
        assert kinds == [ConstraintKind.CONFLICTS_WITH, ConstraintKind.EXACTLY_ONE_OF]

    def test_conflicts_of(self, sample_schema):
        assert sample_schema.conflicts_of("label") == ("title", "settings.0.mode")
        assert sample_schema.conflicts_of("secret") == ()

    def test_depth(self, sample_schema):
        # root -> settings block -> tags set
        assert sample_schema.depth() == 3
        assert SchemaDescriptor(version=0).depth() == 1

    def test_queries_do_not_mutate(self, sample_schema):
        before = sample_schema.model_dump()
        sample_schema.constraints()
        sample_schema.deprecated_fields()
        list(sample_schema.walk())
        assert sample_schema.model_dump() == before


class TestSchemaDescriptorConstruction:

    def test_duplicate_fields_rejected(self):
        with pytest.raises(SchemaError) as exc_info:
            SchemaDescriptor(version=0, fields=(_string("a"), _string("a")))
        assert exc_info.value.error_code == "SCHEMA_001"

    def test_unknown_constraint_target_rejected(self):
        with pytest.raises(SchemaError) as exc_info:
            SchemaDescriptor(version=0, fields=(_string("a", constraints=(conflicts_with("ghost"),)),))
        assert exc_info.value.error_code == "SCHEMA_002"
        assert exc_info.value.context["target"] == "ghost"

    def test_nested_blocks_defer_constraint_checks_to_root(self):
        # References are absolute, so a nested block alone cannot resolve them
        block = SchemaDescriptor(fields=(_string("mode", constraints=(conflicts_with("label"),)),))
        assert block.version is None

    def test_evolve(self, sample_schema):
        evolved = sample_schema.evolve(
            4,
            replace=(_string("title", cardinality=Cardinality.OPTIONAL),),
            remove=("token",),
            add=(_string("subtitle"),),
        )
        assert evolved.version == 4
        assert evolved.field_names == ("title", "label", "secret", "settings", "subtitle")
        assert evolved.field("title").is_optional
        # The source descriptor is unchanged
        assert sample_schema.field("title").is_required
        assert sample_schema.has_field("token")

    def test_evolve_unknown_field_rejected(self, sample_schema):
        with pytest.raises(SchemaError):
            sample_schema.evolve(4, remove=("ghost",))

    def test_evolve_revalidates_constraints(self, sample_schema):
        with pytest.raises(SchemaError):
            sample_schema.evolve(4, remove=("secret",))
