from typing import Optional

# RDB$FIELD_TYPE codes
SHORT = 7
LONG = 8
FLOAT = 10
DATE = 12
TIME = 13
TEXT = 14
INT64 = 16
BOOLEAN = 23
INT128 = 26
DOUBLE = 27
TIME_TZ = 28
TIMESTAMP_TZ = 29
TIMESTAMP = 35
VARYING = 37
BLOB = 261

# RDB$FIELD_SUB_TYPE for BLOB columns
BLOB_SUB_TYPE_TEXT = 1

TEXT_TYPE = "TEXT"
BINARY_TYPE = "BYTEA"

_SIMPLE_TYPES = {
    SHORT: "SMALLINT",
    LONG: "INTEGER",
    INT64: "BIGINT",
    INT128: "NUMERIC(39,0)",
    FLOAT: "REAL",
    DOUBLE: "DOUBLE PRECISION",
    DATE: "DATE",
    TIME: "TIME",
    TIMESTAMP: "TIMESTAMP",
    TIME_TZ: "TIME WITH TIME ZONE",
    TIMESTAMP_TZ: "TIMESTAMP WITH TIME ZONE",
    BOOLEAN: "BOOLEAN",
}

_SCALED_INTEGER_TYPES = (SHORT, LONG, INT64, INT128)


def map_firebird_type(
    field_type: Optional[int],
    field_length: Optional[int],
    field_precision: Optional[int],
    field_scale: Optional[int],
    field_sub_type: Optional[int],
) -> str:
    """
    将Firebird字段定义映射为PostgreSQL列类型

    Args:
        field_type: RDB$FIELD_TYPE
        field_length: RDB$FIELD_LENGTH (CHAR/VARCHAR)
        field_precision: RDB$FIELD_PRECISION (NUMERIC/DECIMAL)
        field_scale: RDB$FIELD_SCALE，负数表示小数位数
        field_sub_type: RDB$FIELD_SUB_TYPE (BLOB)

    Returns:
        PostgreSQL类型声明，未知类型一律映射为TEXT
    """
    # NUMERIC/DECIMAL 以带负刻度的整数存储
    if field_type in _SCALED_INTEGER_TYPES and (field_scale or 0) < 0:
        precision = field_precision or 18
        return f"NUMERIC({precision},{abs(field_scale)})"

    if field_type == TEXT:
        return f"CHAR({_positive(field_length, 1)})"
    if field_type == VARYING:
        return f"VARCHAR({_positive(field_length, 255)})"
    if field_type == BLOB:
        return TEXT_TYPE if field_sub_type == BLOB_SUB_TYPE_TEXT else BINARY_TYPE

    return _SIMPLE_TYPES.get(field_type, TEXT_TYPE)


def _positive(value: Optional[int], default: int) -> int:
    if isinstance(value, int) and value > 0:
        return value
    return default
