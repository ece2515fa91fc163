# ==============================================
# Tests for ShapeAnalyzer
# ==============================================

import pytest

from shapesync.schema.analyzer import ShapeAnalyzer
from shapesync.schema.shape import DeclaredShape, Property, Shape


@pytest.fixture
def analyzer():
    return ShapeAnalyzer()


@pytest.fixture
def known_test_shape():
    return Shape(
        entity_key="test",
        key_names=["id"],
        properties={
            "id": Property("id", "integer"),
            "date": Property("date", "date"),
            "str": Property("str", "string"),
        },
    )


class TestNewShape:

    def test_first_sighting(self, analyzer):
        declared = DeclaredShape(key_names=("id",), properties=("id:integer", "date:date", "str:string"))
        delta = analyzer.analyze("test", declared, None)

        assert delta.is_new is True
        assert delta.previous_shape is None
        assert delta.full_property_set == {"id": "integer", "date": "date", "str": "string"}
        assert delta.new_keys == ["id"]

    def test_key_without_property_becomes_string(self, analyzer):
        declared = DeclaredShape(key_names=("code",), properties=("qty:integer",))
        delta = analyzer.analyze("test", declared, None)

        assert delta.full_property_set == {"qty": "integer", "code": "string"}

    def test_friendly_names_for_unknown_properties_are_ignored(self, analyzer):
        declared = DeclaredShape(
            properties=("str:string",),
            friendly_names={"str": "Label", "ghost": "Ghost"},
        )
        delta = analyzer.analyze("test", declared, None)

        assert delta.friendly_name_map == {"str": "Label"}


class TestExistingShape:

    def test_new_key_is_unioned(self, analyzer, known_test_shape):
        declared = DeclaredShape(key_names=("sku",), properties=("sku:string",))
        delta = analyzer.analyze("test", declared, known_test_shape)

        assert delta.is_new is False
        assert delta.previous_shape is known_test_shape
        assert delta.new_keys == ["id", "sku"]
        assert delta.has_key_changes is True

    def test_full_property_set_is_emitted(self, analyzer, known_test_shape):
        """Already-known properties are re-emitted, not just the new one."""
        declared = DeclaredShape(key_names=("id",), properties=("price:float",))
        delta = analyzer.analyze("test", declared, known_test_shape)

        assert delta.full_property_set == {
            "id": "integer",
            "date": "date",
            "str": "string",
            "price": "float",
        }
        assert delta.has_key_changes is False
        assert delta.new_keys == ["id"]

    def test_committed_type_is_kept(self, analyzer, known_test_shape):
        declared = DeclaredShape(properties=("id:string", "extra:bool"))
        delta = analyzer.analyze("test", declared, known_test_shape)

        assert delta.full_property_set["id"] == "integer"
        assert delta.full_property_set["extra"] == "bool"

    def test_key_set_never_shrinks(self, analyzer, known_test_shape):
        declared = DeclaredShape(key_names=(), properties=("extra:bool",))
        delta = analyzer.analyze("test", declared, known_test_shape)

        assert delta.new_keys == ["id"]
        assert delta.has_key_changes is False

    def test_friendly_names_accumulate(self, analyzer, known_test_shape):
        known_test_shape.friendly_names = {"str": "Label"}
        declared = DeclaredShape(properties=("date:date",), friendly_names={"date": "When"})
        delta = analyzer.analyze("test", declared, known_test_shape)

        assert delta.friendly_name_map == {"str": "Label", "date": "When"}

    def test_previous_shape_is_not_mutated(self, analyzer, known_test_shape):
        declared = DeclaredShape(key_names=("sku",), properties=("sku:string",))
        analyzer.analyze("test", declared, known_test_shape)

        assert known_test_shape.key_names == ["id"]
        assert set(known_test_shape.properties) == {"id", "date", "str"}
