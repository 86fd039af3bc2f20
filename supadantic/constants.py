"""
Centralized constants for supadantic.

Type mappings, reserved identifiers, cache file names and configuration
defaults live here so the rest of the codebase does not hard-code them.
"""

from typing import Dict, Set, Tuple


# =============================================================================
# CORE CONFIGURATION
# =============================================================================

class DefaultConfig:
    """Default configuration values."""

    CONFIG_FILE = "supadantic.yaml"
    DOTENV_FILE = ".env"
    OUTPUT_DIR = "models"
    SCHEMA = "public"
    CACHE_DIR = ".supadantic"
    FETCH_MODE = "always"
    REQUEST_TIMEOUT = 30

    # Data API credentials
    URL_ENV_VAR = "SUPABASE_DATA_API_URL"
    SECRET_KEY_ENV_VAR = "SUPABASE_SECRET_KEY"
    REQUIRED_URL_SCHEME = "https://"
    MIN_SECRET_KEY_LENGTH = 20


class CacheFiles:
    """File names inside the cache directory."""

    TABLE_HASHES = "table_hashes.json"
    SCHEMA_SNAPSHOT = "schema_cache.json"
    ENUMS = "enum_cache.json"


# =============================================================================
# TYPE MAPPINGS
# =============================================================================

class PythonTypes:
    """Python type expressions used in generated annotations."""

    ANY = "Any"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "Decimal"
    STR = "str"
    BOOL = "bool"
    BYTES = "bytes"
    UUID = "UUID"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    TIMEDELTA = "timedelta"
    NONE = "None"
    JSON_OBJECT = "dict[str, Any]"
    STRING_MAP = "dict[str, str]"
    FLOAT_LIST = "list[float]"


ARRAY_SUFFIX = "[]"

# PostgreSQL type name (lower-case) -> Python type expression.
# https://www.postgresql.org/docs/current/datatype.html
PG_TYPE_MAP: Dict[str, str] = {
    # Integer types
    "int2": PythonTypes.INT,
    "int4": PythonTypes.INT,
    "int8": PythonTypes.INT,
    "smallint": PythonTypes.INT,
    "integer": PythonTypes.INT,
    "int": PythonTypes.INT,
    "bigint": PythonTypes.INT,

    # Serial types
    "serial2": PythonTypes.INT,
    "serial4": PythonTypes.INT,
    "serial8": PythonTypes.INT,
    "smallserial": PythonTypes.INT,
    "serial": PythonTypes.INT,
    "bigserial": PythonTypes.INT,

    # Floating-point types
    "float4": PythonTypes.FLOAT,
    "float8": PythonTypes.FLOAT,
    "float": PythonTypes.FLOAT,
    "real": PythonTypes.FLOAT,
    "double precision": PythonTypes.FLOAT,

    # Arbitrary precision types
    "numeric": PythonTypes.DECIMAL,
    "decimal": PythonTypes.DECIMAL,

    # Monetary type (locale formatted, keep as text)
    "money": PythonTypes.STR,

    # Character types
    "text": PythonTypes.STR,
    "varchar": PythonTypes.STR,
    "character varying": PythonTypes.STR,
    "char": PythonTypes.STR,
    "character": PythonTypes.STR,
    "bpchar": PythonTypes.STR,
    "name": PythonTypes.STR,
    "citext": PythonTypes.STR,

    # Binary data
    "bytea": PythonTypes.BYTES,

    # Date/time types
    "date": PythonTypes.DATE,
    "timestamp": PythonTypes.DATETIME,
    "timestamptz": PythonTypes.DATETIME,
    "timestamp without time zone": PythonTypes.DATETIME,
    "timestamp with time zone": PythonTypes.DATETIME,
    "time": PythonTypes.TIME,
    "timetz": PythonTypes.TIME,
    "time without time zone": PythonTypes.TIME,
    "time with time zone": PythonTypes.TIME,
    "interval": PythonTypes.TIMEDELTA,

    # Boolean
    "bool": PythonTypes.BOOL,
    "boolean": PythonTypes.BOOL,

    # Geometric types
    "point": PythonTypes.STR,
    "line": PythonTypes.STR,
    "lseg": PythonTypes.STR,
    "box": PythonTypes.STR,
    "path": PythonTypes.STR,
    "polygon": PythonTypes.STR,
    "circle": PythonTypes.STR,

    # Network address types
    "inet": PythonTypes.STR,
    "cidr": PythonTypes.STR,
    "macaddr": PythonTypes.STR,
    "macaddr8": PythonTypes.STR,

    # Bit strings
    "bit": PythonTypes.STR,
    "bit varying": PythonTypes.STR,
    "varbit": PythonTypes.STR,

    # Text search
    "tsvector": PythonTypes.STR,
    "tsquery": PythonTypes.STR,

    "uuid": PythonTypes.UUID,
    "xml": PythonTypes.STR,

    # JSON types
    "json": PythonTypes.JSON_OBJECT,
    "jsonb": PythonTypes.JSON_OBJECT,

    # Range and multirange types
    "int4range": PythonTypes.STR,
    "int8range": PythonTypes.STR,
    "numrange": PythonTypes.STR,
    "tsrange": PythonTypes.STR,
    "tstzrange": PythonTypes.STR,
    "daterange": PythonTypes.STR,
    "int4multirange": PythonTypes.STR,
    "int8multirange": PythonTypes.STR,
    "nummultirange": PythonTypes.STR,
    "tsmultirange": PythonTypes.STR,
    "tstzmultirange": PythonTypes.STR,
    "datemultirange": PythonTypes.STR,

    # Object identifier types
    "oid": PythonTypes.INT,
    "regclass": PythonTypes.STR,
    "regcollation": PythonTypes.STR,
    "regconfig": PythonTypes.STR,
    "regdictionary": PythonTypes.STR,
    "regnamespace": PythonTypes.STR,
    "regoper": PythonTypes.STR,
    "regoperator": PythonTypes.STR,
    "regproc": PythonTypes.STR,
    "regprocedure": PythonTypes.STR,
    "regrole": PythonTypes.STR,
    "regtype": PythonTypes.STR,
    "pg_lsn": PythonTypes.STR,

    # Pseudo-types
    "void": PythonTypes.NONE,
    "record": PythonTypes.JSON_OBJECT,

    # Extensions
    "vector": PythonTypes.FLOAT_LIST,  # pgvector
    "geometry": PythonTypes.STR,  # PostGIS
    "geography": PythonTypes.STR,
    "ltree": PythonTypes.STR,
    "lquery": PythonTypes.STR,
    "ltxtquery": PythonTypes.STR,
    "hstore": PythonTypes.STRING_MAP,
}

# Source types that hold semi-structured objects
JSON_SOURCE_TYPES: Set[str] = {"json", "jsonb"}

# Names a generated annotation may reference, and where they are imported from
TYPE_IMPORTS: Dict[str, Tuple[str, str]] = {
    PythonTypes.ANY: ("typing", "Any"),
    PythonTypes.DECIMAL: ("decimal", "Decimal"),
    PythonTypes.UUID: ("uuid", "UUID"),
    PythonTypes.DATE: ("datetime", "date"),
    PythonTypes.DATETIME: ("datetime", "datetime"),
    PythonTypes.TIME: ("datetime", "time"),
    PythonTypes.TIMEDELTA: ("datetime", "timedelta"),
}


# =============================================================================
# FOREIGN KEY INFERENCE
# =============================================================================

class ForeignKeyConventions:
    """Naming conventions used to infer undeclared foreign keys."""

    SUFFIX = "_id"
    PRIMARY_KEY_NAME = "id"

    # Source types that can hold an identifier reference
    IDENTIFIER_TYPES: Set[str] = {
        "uuid",
        "int2", "int4", "int8",
        "smallint", "integer", "int", "bigint",
        "serial2", "serial4", "serial8",
        "smallserial", "serial", "bigserial",
    }


# =============================================================================
# NAMING CONVENTIONS
# =============================================================================

class FieldNames:
    """Reserved identifiers for generated modules."""

    # Reserved Python keywords
    PYTHON_KEYWORDS: Set[str] = {
        "False", "None", "True", "and", "as", "assert", "async", "await",
        "break", "class", "continue", "def", "del", "elif", "else", "except",
        "finally", "for", "from", "global", "if", "import", "in", "is",
        "lambda", "nonlocal", "not", "or", "pass", "raise", "return", "try",
        "while", "with", "yield",
    }

    # Soft keywords, valid but confusing as attribute names
    SOFT_KEYWORDS: Set[str] = {"match", "case", "type", "_"}

    # Names referenced by generated annotations; a field with one of these
    # names would shadow the type inside the class body
    ANNOTATION_NAMES: Set[str] = {
        "Any", "Optional", "TYPE_CHECKING", "BaseModel", "ConfigDict", "Field",
        "Decimal", "UUID", "date", "datetime", "time", "timedelta",
        "int", "float", "str", "bool", "bytes", "list", "dict", "object",
    }

    # pydantic.BaseModel attributes a field must not shadow
    BASE_MODEL_ATTRIBUTES: Set[str] = {
        "model_config", "model_fields", "model_computed_fields", "model_extra",
        "model_fields_set", "model_construct", "model_copy", "model_dump",
        "model_dump_json", "model_json_schema", "model_parametrized_name",
        "model_post_init", "model_rebuild", "model_validate", "model_validate_json",
        "model_validate_strings", "copy", "dict", "json", "parse_obj", "parse_raw",
        "parse_file", "from_orm", "construct", "schema", "schema_json", "validate",
        "update_forward_refs",
    }

    FIELD_ESCAPE_SUFFIX = "_"
    DIGIT_FIELD_PREFIX = "field_"
    FALLBACK_FIELD_NAME = "field"

    CLASS_DIGIT_PREFIX = "Table"
    CLASS_ESCAPE_SUFFIX = "Model"

    RELATION_COLLISION_SUFFIX = "_rel"

    @classmethod
    def reserved_field_names(cls) -> Set[str]:
        """All names that must be escaped when used as a field or module name."""
        return cls.PYTHON_KEYWORDS | cls.SOFT_KEYWORDS | cls.ANNOTATION_NAMES | cls.BASE_MODEL_ATTRIBUTES

    @classmethod
    def reserved_class_names(cls) -> Set[str]:
        """Lower-cased names that must be escaped when used as a class name."""
        names = cls.PYTHON_KEYWORDS | cls.SOFT_KEYWORDS | cls.ANNOTATION_NAMES
        return {name.lower() for name in names}


# =============================================================================
# GENERATED FILES
# =============================================================================

class GenerationOptions:
    """Code generation options."""

    LINE_LENGTH = 120
    MODULE_SUFFIX = ".py"
    STUB_SUFFIX = ".pyi"
    MANIFEST_FILE = "__init__.py"

    GENERATED_HEADER = "# GENERATED CODE - DO NOT MODIFY BY HAND"
    SOURCE_TABLE_HEADER = "# Source table: {table}"

    MODEL_BASE_CLASS = "BaseModel"
    MODEL_DOCSTRING = "Represents the '{table}' table."
