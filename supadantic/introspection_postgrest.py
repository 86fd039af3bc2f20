"""
Schema introspection through the PostgREST (Supabase Data API) OpenAPI document.

The Data API describes every exposed table as an OpenAPI definition. Column
types come from the ``format`` / ``type`` of each property, primary and
foreign keys from the ``<pk/>`` and ``<fk table='..' column='..'/>`` markers
PostgREST writes into property descriptions.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter, Retry

from .constants import ARRAY_SUFFIX, PG_TYPE_MAP, DefaultConfig
from .domain.models import Column, ForeignKey, SchemaSnapshot, Table
from .exceptions import SchemaFetchError

logger = logging.getLogger(__name__)


OPENAPI_MEDIA_TYPE = "application/openapi+json"

_PK_MARKER = "<pk/>"
_FK_MARKER_PATTERN = re.compile(r"<fk\s+table=['\"]([^'\"]+)['\"]\s+column=['\"]([^'\"]+)['\"]\s*/>")

# OpenAPI formats that are not PostgreSQL type names
_FORMAT_ALIASES = {
    "date-time": "timestamptz",
    "int64": "int8",
    "int32": "int4",
    "int16": "int2",
    "double": "float8",
}

# Fallback on the JSON schema ``type`` when the format is unknown
_JSON_TYPE_TO_PG = {
    "integer": "int4",
    "number": "float8",
    "boolean": "bool",
    "object": "jsonb",
    "string": "text",
}


def openapi_type_to_pg_type(schema: Dict[str, Any]) -> str:
    """
    Convert an OpenAPI property schema into a PostgreSQL type name.

    Example:
        >>> openapi_type_to_pg_type({"type": "string", "format": "timestamp with time zone"})
        'timestamp with time zone'
        >>> openapi_type_to_pg_type({"type": "array", "items": {"type": "integer"}})
        'int4[]'
    """
    json_type = schema.get("type")
    type_format = schema.get("format")

    if isinstance(type_format, str) and type_format:
        pg_type = type_format.strip().lower()
        pg_type = _FORMAT_ALIASES.get(pg_type, pg_type)
        base_type = pg_type[:-len(ARRAY_SUFFIX)] if pg_type.endswith(ARRAY_SUFFIX) else pg_type
        if base_type in PG_TYPE_MAP:
            return pg_type

    if json_type == "array":
        items = schema.get("items")
        if isinstance(items, dict):
            return openapi_type_to_pg_type(items) + ARRAY_SUFFIX
        return "jsonb"

    return _JSON_TYPE_TO_PG.get(json_type, "text")


def _default_literal(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    # Booleans and numbers keep their SQL spelling (true, 0, 1.5)
    return json.dumps(value)


class PostgrestSchemaFetcher:
    """Fetches the table schema of one database schema through the Data API."""

    def __init__(
        self,
        url: str,
        secret_key: str,
        schema: str = DefaultConfig.SCHEMA,
        timeout: float = DefaultConfig.REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.url = url.rstrip("/")
        self.secret_key = secret_key
        self.schema = schema
        self.timeout = timeout
        self.session = session or self._create_session()

        self._detected_enums: Dict[str, List[str]] = {}
        self._detected_foreign_keys: Dict[str, ForeignKey] = {}

    @staticmethod
    def _create_session() -> requests.Session:
        session = requests.Session()
        retries = Retry(total=3, backoff_factor=0.3, status_forcelist=[502, 503, 504])
        session.mount("https://", HTTPAdapter(max_retries=retries))
        session.mount("http://", HTTPAdapter(max_retries=retries))
        return session

    @property
    def endpoint(self) -> str:
        return f"{self.url}/rest/v1/"

    @property
    def detected_enums(self) -> Dict[str, List[str]]:
        """Enum types found during the last fetch (``<table>_<column>`` -> values)."""
        return {name: list(values) for name, values in self._detected_enums.items()}

    @property
    def detected_foreign_keys(self) -> Dict[str, ForeignKey]:
        """Explicit foreign keys found during the last fetch, keyed ``table.column``."""
        return dict(self._detected_foreign_keys)

    def headers(self) -> Dict[str, str]:
        headers = {
            "apikey": self.secret_key,
            "Authorization": f"Bearer {self.secret_key}",
            "Accept": OPENAPI_MEDIA_TYPE,
        }
        if self.schema != DefaultConfig.SCHEMA:
            headers["Accept-Profile"] = self.schema
        return headers

    def fetch_document(self) -> Dict[str, Any]:
        """Download the OpenAPI document."""
        logger.debug(f"Requesting OpenAPI document from {self.endpoint}")
        try:
            response = self.session.get(self.endpoint, headers=self.headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise SchemaFetchError(f"Could not reach the Data API at {self.url}: {e}") from e

        if response.status_code != 200:
            raise SchemaFetchError(
                "Failed to fetch OpenAPI spec",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            document = response.json()
        except ValueError as e:
            raise SchemaFetchError(
                "Data API returned a response that is not valid JSON",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        if not isinstance(document, dict):
            raise SchemaFetchError("Data API returned an unexpected OpenAPI document")
        return document

    def fetch(self) -> SchemaSnapshot:
        """
        Fetch the schema as a snapshot.

        Raises:
            SchemaFetchError: On transport, HTTP or decoding failures
        """
        snapshot = self.parse_document(self.fetch_document())
        logger.info(f"Found {len(snapshot)} tables in schema '{self.schema}'")
        return snapshot

    def parse_document(self, document: Dict[str, Any]) -> SchemaSnapshot:
        """Parse a Swagger 2 (``definitions``) or OpenAPI 3 (``components.schemas``) document."""
        definitions = document.get("definitions")
        if definitions is None:
            definitions = (document.get("components") or {}).get("schemas")
        if not isinstance(definitions, dict):
            definitions = {}

        enums: Dict[str, List[str]] = {}
        foreign_keys: Dict[str, ForeignKey] = {}
        tables = []

        for table_name, table_schema in definitions.items():
            if not isinstance(table_schema, dict):
                continue
            properties = table_schema.get("properties") or {}
            required = set(table_schema.get("required") or [])

            columns = []
            for column_name, column_schema in properties.items():
                column = self._parse_column(table_name, column_name, column_schema, column_name in required, enums)
                if column.foreign_key is not None:
                    foreign_keys[f"{table_name}.{column_name}"] = column.foreign_key
                columns.append(column)

            if columns:
                tables.append(Table(name=table_name, columns=tuple(columns)))

        self._detected_enums = enums
        self._detected_foreign_keys = foreign_keys
        if enums:
            logger.debug(f"Detected {len(enums)} enum types")
        return SchemaSnapshot(tables)

    @staticmethod
    def _parse_column(table_name: str, column_name: str, column_schema: Dict[str, Any],
                      is_required: bool, enums: Dict[str, List[str]]) -> Column:
        enum_values = column_schema.get("enum")
        if enum_values:
            source_type = f"{table_name}_{column_name}"
            enums[source_type] = [str(value) for value in enum_values]
        else:
            source_type = openapi_type_to_pg_type(column_schema)

        description = column_schema.get("description") or ""
        foreign_key = None
        fk_match = _FK_MARKER_PATTERN.search(description)
        if fk_match:
            foreign_key = ForeignKey(
                column=column_name,
                referenced_table=fk_match.group(1),
                referenced_column=fk_match.group(2),
            )

        return Column(
            name=column_name,
            source_type=source_type,
            nullable=not is_required,
            default=_default_literal(column_schema.get("default")),
            is_primary_key=_PK_MARKER in description,
            foreign_key=foreign_key,
        )
