import datetime
import decimal
import uuid

import pytest

from plugboard.sdk.models import ScalarType
from plugboard.sdk.typemap import (
    infer_value_type,
    map_cql_type,
    map_dynamodb_type,
    map_native_type,
    map_postgres_oid,
    map_sql_type,
)


@pytest.mark.parametrize(
    "native, expected",
    [
        ("VARCHAR(255)", ScalarType.STRING),
        ("character varying(32)", ScalarType.STRING),
        ("INTEGER", ScalarType.NUMBER),
        ("int unsigned", ScalarType.NUMBER),
        ("NUMERIC(10, 2)", ScalarType.NUMBER),
        ("double precision", ScalarType.NUMBER),
        ("BOOLEAN", ScalarType.BOOLEAN),
        ("bytea", ScalarType.BINARY),
        ("BLOB", ScalarType.BINARY),
        ("jsonb", ScalarType.MAP),
        ("integer[]", ScalarType.LIST),
        ("TIMESTAMP WITH TIME ZONE", ScalarType.STRING),
        ("sql_variant", ScalarType.MIXED),
        ("NULL", ScalarType.NULL),
    ],
)
def test_map_sql_type(native, expected):
    assert map_sql_type(native) == expected


@pytest.mark.parametrize("native", [None, "", "geometry", "tsvector", 42])
def test_map_sql_type_is_total(native):
    assert map_sql_type(native) == ScalarType.UNKNOWN


def test_map_postgres_oid():
    assert map_postgres_oid(16) == ScalarType.BOOLEAN
    assert map_postgres_oid(23) == ScalarType.NUMBER
    assert map_postgres_oid("1043") == ScalarType.STRING
    assert map_postgres_oid(3802) == ScalarType.MAP
    assert map_postgres_oid(999999) == ScalarType.UNKNOWN
    assert map_postgres_oid("not-an-oid") == ScalarType.UNKNOWN


def test_map_dynamodb_type():
    assert map_dynamodb_type("S") == ScalarType.STRING
    assert map_dynamodb_type("N") == ScalarType.NUMBER
    assert map_dynamodb_type("B") == ScalarType.BINARY
    assert map_dynamodb_type("SS") == ScalarType.LIST
    assert map_dynamodb_type("M") == ScalarType.MAP
    assert map_dynamodb_type("BOOL") == ScalarType.BOOLEAN
    assert map_dynamodb_type("NULL") == ScalarType.NULL
    assert map_dynamodb_type("X") == ScalarType.UNKNOWN
    assert map_dynamodb_type(None) == ScalarType.UNKNOWN


def test_map_cql_type():
    assert map_cql_type("text") == ScalarType.STRING
    assert map_cql_type("bigint") == ScalarType.NUMBER
    assert map_cql_type("list<text>") == ScalarType.LIST
    assert map_cql_type("frozen<map<text, int>>") == ScalarType.MAP
    assert map_cql_type("frozen<address>") == ScalarType.MAP
    assert map_cql_type("") == ScalarType.UNKNOWN


def test_infer_value_type():
    assert infer_value_type(None) == ScalarType.NULL
    assert infer_value_type(True) == ScalarType.BOOLEAN
    assert infer_value_type(3) == ScalarType.NUMBER
    assert infer_value_type(decimal.Decimal("1.5")) == ScalarType.NUMBER
    assert infer_value_type("x") == ScalarType.STRING
    assert infer_value_type(datetime.datetime(2024, 1, 1)) == ScalarType.STRING
    assert infer_value_type(uuid.uuid4()) == ScalarType.STRING
    assert infer_value_type(b"\x00") == ScalarType.BINARY
    assert infer_value_type({"a": 1}) == ScalarType.MAP
    assert infer_value_type([1, 2]) == ScalarType.LIST
    assert infer_value_type(object()) == ScalarType.UNKNOWN


def test_map_native_type_dispatch():
    assert map_native_type("dynamodb", "N") == ScalarType.NUMBER
    assert map_native_type("sql", "text") == ScalarType.STRING
    assert map_native_type("no-such-family", "text") == ScalarType.UNKNOWN
