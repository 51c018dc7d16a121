"""
Native type tags to the canonical ScalarType taxonomy.

Every mapper is total: an unrecognized or malformed tag maps to
``ScalarType.UNKNOWN`` and never raises.
"""
import datetime
import decimal
import re
import uuid
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from plugboard.sdk.models import ScalarType

_SQL_STRING = {
    "char", "varchar", "nchar", "nvarchar", "character", "character varying",
    "text", "tinytext", "mediumtext", "longtext", "ntext", "string", "clob",
    "nclob", "citext", "uuid", "uniqueidentifier", "enum", "set", "xml",
    "inet", "cidr", "macaddr",
    "date", "time", "timetz", "datetime", "datetime2", "smalldatetime",
    "datetimeoffset", "timestamp", "timestamptz", "interval",
    "time with time zone", "time without time zone",
    "timestamp with time zone", "timestamp without time zone",
}
_SQL_NUMBER = {
    "int", "integer", "smallint", "bigint", "tinyint", "mediumint",
    "int2", "int4", "int8", "serial", "smallserial", "bigserial",
    "decimal", "numeric", "dec", "number", "real", "float", "float4",
    "float8", "double", "double precision", "money", "smallmoney", "year",
}
_SQL_BOOLEAN = {"bool", "boolean", "bit"}
_SQL_BINARY = {
    "blob", "tinyblob", "mediumblob", "longblob", "binary", "varbinary",
    "bytea", "image", "raw", "long raw",
}
_SQL_MAP = {"json", "jsonb", "hstore", "object", "struct", "record"}
_SQL_MIXED = {"variant", "sql_variant", "any"}

_PARAMS = re.compile(r"\(.*?\)")
_MODIFIERS = re.compile(r"\b(unsigned|signed|zerofill|collate\s+\S+)\b")

# pg_type OIDs reported by the postgres wire protocol
_POSTGRES_OIDS: Dict[int, ScalarType] = {
    16: ScalarType.BOOLEAN,
    17: ScalarType.BINARY,
    18: ScalarType.STRING,
    19: ScalarType.STRING,
    20: ScalarType.NUMBER,
    21: ScalarType.NUMBER,
    23: ScalarType.NUMBER,
    25: ScalarType.STRING,
    114: ScalarType.MAP,
    700: ScalarType.NUMBER,
    701: ScalarType.NUMBER,
    790: ScalarType.NUMBER,
    1000: ScalarType.LIST,
    1005: ScalarType.LIST,
    1007: ScalarType.LIST,
    1009: ScalarType.LIST,
    1016: ScalarType.LIST,
    1042: ScalarType.STRING,
    1043: ScalarType.STRING,
    1082: ScalarType.STRING,
    1083: ScalarType.STRING,
    1114: ScalarType.STRING,
    1184: ScalarType.STRING,
    1186: ScalarType.STRING,
    1700: ScalarType.NUMBER,
    2950: ScalarType.STRING,
    3802: ScalarType.MAP,
}

_DYNAMODB_TAGS: Dict[str, ScalarType] = {
    "S": ScalarType.STRING,
    "N": ScalarType.NUMBER,
    "B": ScalarType.BINARY,
    "BOOL": ScalarType.BOOLEAN,
    "NULL": ScalarType.NULL,
    "M": ScalarType.MAP,
    "L": ScalarType.LIST,
    "SS": ScalarType.LIST,
    "NS": ScalarType.LIST,
    "BS": ScalarType.LIST,
}

_CQL_TYPES: Dict[str, ScalarType] = {
    "ascii": ScalarType.STRING,
    "text": ScalarType.STRING,
    "varchar": ScalarType.STRING,
    "inet": ScalarType.STRING,
    "uuid": ScalarType.STRING,
    "timeuuid": ScalarType.STRING,
    "timestamp": ScalarType.STRING,
    "date": ScalarType.STRING,
    "time": ScalarType.STRING,
    "duration": ScalarType.STRING,
    "int": ScalarType.NUMBER,
    "bigint": ScalarType.NUMBER,
    "smallint": ScalarType.NUMBER,
    "tinyint": ScalarType.NUMBER,
    "varint": ScalarType.NUMBER,
    "decimal": ScalarType.NUMBER,
    "float": ScalarType.NUMBER,
    "double": ScalarType.NUMBER,
    "counter": ScalarType.NUMBER,
    "boolean": ScalarType.BOOLEAN,
    "blob": ScalarType.BINARY,
    "list": ScalarType.LIST,
    "set": ScalarType.LIST,
    "tuple": ScalarType.LIST,
    "vector": ScalarType.LIST,
    "map": ScalarType.MAP,
}


def map_sql_type(native: Any) -> ScalarType:
    """Maps a SQL column type name (e.g. ``VARCHAR(255)``, ``int[]``)."""
    if native is None:
        return ScalarType.UNKNOWN
    try:
        name = str(native).strip().lower()
    except Exception:
        return ScalarType.UNKNOWN
    if not name:
        return ScalarType.UNKNOWN
    if name.endswith("[]") or name.startswith("array"):
        return ScalarType.LIST
    if name == "null":
        return ScalarType.NULL

    name = _PARAMS.sub("", name)
    name = _MODIFIERS.sub("", name)
    name = " ".join(name.split())

    if name in _SQL_STRING:
        return ScalarType.STRING
    if name in _SQL_NUMBER:
        return ScalarType.NUMBER
    if name in _SQL_BOOLEAN:
        return ScalarType.BOOLEAN
    if name in _SQL_BINARY:
        return ScalarType.BINARY
    if name in _SQL_MAP:
        return ScalarType.MAP
    if name in _SQL_MIXED:
        return ScalarType.MIXED

    # Affinity fallback for vendor spellings such as "unsigned big int" or "nvarchar2"
    if "char" in name or "text" in name or "clob" in name:
        return ScalarType.STRING
    if "int" in name or "float" in name or "double" in name or "numeric" in name:
        return ScalarType.NUMBER
    if "blob" in name or "binary" in name:
        return ScalarType.BINARY
    if "time" in name or "date" in name:
        return ScalarType.STRING
    return ScalarType.UNKNOWN


def map_postgres_oid(oid: Any) -> ScalarType:
    try:
        return _POSTGRES_OIDS.get(int(oid), ScalarType.UNKNOWN)
    except (TypeError, ValueError):
        return ScalarType.UNKNOWN


def map_dynamodb_type(tag: Any) -> ScalarType:
    if not isinstance(tag, str):
        return ScalarType.UNKNOWN
    return _DYNAMODB_TAGS.get(tag.strip().upper(), ScalarType.UNKNOWN)


def map_cql_type(native: Any) -> ScalarType:
    """Maps a CQL type string, unwrapping ``frozen<...>``."""
    if not isinstance(native, str) or not native.strip():
        return ScalarType.UNKNOWN
    name = native.strip().lower()
    while name.startswith("frozen<") and name.endswith(">"):
        name = name[len("frozen<"):-1].strip()
    base = name.split("<", 1)[0].strip()
    if base in _CQL_TYPES:
        return _CQL_TYPES[base]
    # Anything else is a user-defined type
    return ScalarType.MAP if re.fullmatch(r"[a-z_][a-z0-9_.]*", base) else ScalarType.UNKNOWN


def infer_value_type(value: Any) -> ScalarType:
    """Infers a canonical type from a runtime value (JSON/BSON/driver output)."""
    if value is None:
        return ScalarType.NULL
    if isinstance(value, bool):
        return ScalarType.BOOLEAN
    if isinstance(value, (int, float, decimal.Decimal)):
        return ScalarType.NUMBER
    if isinstance(value, (str, uuid.UUID, datetime.date, datetime.time, datetime.timedelta)):
        return ScalarType.STRING
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ScalarType.BINARY
    if isinstance(value, Mapping):
        return ScalarType.MAP
    if isinstance(value, (list, tuple, set, frozenset)):
        return ScalarType.LIST
    # bson.ObjectId / Decimal128 without importing bson
    type_name = type(value).__name__
    if type_name in ("ObjectId", "Timestamp", "Regex", "Code"):
        return ScalarType.STRING
    if type_name in ("Decimal128", "Int64"):
        return ScalarType.NUMBER
    if type_name == "Binary":
        return ScalarType.BINARY
    return ScalarType.UNKNOWN


def native_type_name(value: Any) -> str:
    return type(value).__name__


_FAMILIES: Dict[str, Callable[[Any], ScalarType]] = {
    "sql": map_sql_type,
    "postgres_oid": map_postgres_oid,
    "dynamodb": map_dynamodb_type,
    "cql": map_cql_type,
    "value": infer_value_type,
}


def map_native_type(family: str, native: Any) -> ScalarType:
    """Dispatches to the mapper for ``family``; unknown families map to UNKNOWN."""
    mapper: Optional[Callable[[Any], ScalarType]] = _FAMILIES.get(family)
    if mapper is None:
        return ScalarType.UNKNOWN
    return mapper(native)
