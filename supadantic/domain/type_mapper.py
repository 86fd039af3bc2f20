"""
PostgreSQL to Python type mapping.

A ``TypeMapper`` owns the enum registry for one generation run. The sync
orchestrator creates a fresh mapper per run and registers the enum types
discovered during that run's fetch before any model is rendered.
"""

import logging
import re
from typing import Dict, List, Set, Tuple

from ..constants import ARRAY_SUFFIX, JSON_SOURCE_TYPES, PG_TYPE_MAP, TYPE_IMPORTS, PythonTypes

logger = logging.getLogger(__name__)

_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def split_array_type(source_type: str) -> Tuple[str, bool]:
    """
    Split a source type into its base type and array flag.

    Example:
        >>> split_array_type("text[]")
        ('text', True)
    """
    source_type = source_type.strip()
    if source_type.endswith(ARRAY_SUFFIX):
        return source_type[:-len(ARRAY_SUFFIX)].strip(), True
    return source_type, False


class TypeMapper:
    """Maps source column types to Python type expressions."""

    def __init__(self, enums: Dict[str, List[str]] = None):
        self._enums: Dict[str, List[str]] = {}
        for name, values in (enums or {}).items():
            self.register_enum(name, values)

    # --- Enum registry ---

    def register_enum(self, name: str, values: List[str]) -> None:
        """Register an enumerated type; names are case-insensitive."""
        self._enums[name.lower()] = list(values)

    def clear_enums(self) -> None:
        self._enums.clear()

    def is_enum(self, name: str) -> bool:
        base_type, _ = split_array_type(name)
        return base_type.lower() in self._enums

    def get_enum_values(self, name: str) -> List[str]:
        base_type, _ = split_array_type(name)
        return list(self._enums.get(base_type.lower(), []))

    @property
    def enums(self) -> Dict[str, List[str]]:
        """Copy of the registered enums."""
        return {name: list(values) for name, values in self._enums.items()}

    # --- Mapping ---

    def map_type(self, source_type: str) -> str:
        """
        Map a source type to a Python type expression.

        Unrecognized types map to ``Any`` instead of failing.

        Example:
            >>> TypeMapper().map_type("int8[]")
            'list[int]'
        """
        base_type, is_array = split_array_type(source_type)
        key = base_type.lower()

        if key in self._enums:
            mapped = PythonTypes.STR
        elif key in PG_TYPE_MAP:
            mapped = PG_TYPE_MAP[key]
        else:
            logger.debug(f"Unrecognized source type '{source_type}', mapping to {PythonTypes.ANY}")
            mapped = PythonTypes.ANY

        if is_array:
            return f"list[{mapped}]"
        return mapped

    def needs_explicit_key(self, source_type: str) -> bool:
        """True for semi-structured object types (json, jsonb)."""
        base_type, _ = split_array_type(source_type)
        return base_type.lower() in JSON_SOURCE_TYPES

    @staticmethod
    def required_imports(type_expr: str) -> Set[Tuple[str, str]]:
        """
        Return the ``(module, name)`` imports a type expression needs.

        Example:
            >>> sorted(TypeMapper.required_imports("list[Decimal]"))
            [('decimal', 'Decimal')]
        """
        imports = set()
        for name in _IDENTIFIER_PATTERN.findall(type_expr):
            if name in TYPE_IMPORTS:
                imports.add(TYPE_IMPORTS[name])
        return imports
