# ==============================================
# Tests for Type Mapping
# ==============================================

import pytest

from shapesync.schema.types import from_sql_type, to_sql_type


class TestToSQLType:

    @pytest.mark.parametrize("logical, expected", [
        ("date", "DATETIME"),
        ("integer", "INT(10)"),
        ("int", "INT(10)"),
        ("float", "FLOAT"),
        ("decimal", "FLOAT"),
        ("double", "FLOAT"),
        ("bool", "BIT"),
        ("text", "TEXT"),
    ])
    def test_known_types(self, logical, expected):
        assert to_sql_type(logical, is_key=False) == expected
        assert to_sql_type(logical, is_key=True) == expected

    def test_string_key_fits_an_index(self):
        assert to_sql_type("string", is_key=True) == "VARCHAR(255)"

    def test_string_non_key(self):
        assert to_sql_type("string", is_key=False) == "VARCHAR(1000)"

    def test_unknown_type_falls_back_to_varchar(self):
        """Unknown logical types never fail."""
        assert to_sql_type("geopoint", is_key=False) == "VARCHAR(1000)"
        assert to_sql_type("", is_key=True) == "VARCHAR(255)"


class TestFromSQLType:

    @pytest.mark.parametrize("sql_type, expected", [
        ("datetime", "date"),
        ("DATE", "date"),
        ("time", "date"),
        ("smalldatetime", "date"),
        ("bigint(20)", "integer"),
        ("INT(10)", "integer"),
        ("int(10) unsigned", "integer"),
        ("smallint", "integer"),
        ("tinyint(1)", "integer"),
        ("decimal(10,2)", "float"),
        ("float", "float"),
        ("Money", "float"),
        ("smallmoney", "float"),
        ("bit(1)", "bool"),
        ("varchar(255)", "string"),
        ("text", "string"),
        ("json", "string"),
    ])
    def test_mapping(self, sql_type, expected):
        assert from_sql_type(sql_type) == expected

    def test_round_trip_of_rendered_types(self):
        """Types the DDL renders come back as the same logical type."""
        for logical in ("date", "integer", "float", "bool", "string"):
            assert from_sql_type(to_sql_type(logical, is_key=False)) == logical
