"""
Relationship inference domain logic for supadantic.

PostgREST does not always report foreign keys, so relationships are derived
from the ``<name>_id`` column naming convention and attached to the schema
snapshot before any code is generated.
"""

import logging
from typing import Iterable, List, Optional, Set

from .models import Column, ForeignKey, SchemaSnapshot, Table
from .type_mapper import split_array_type
from ..constants import ForeignKeyConventions

logger = logging.getLogger(__name__)


def candidate_table_names(base_name: str) -> List[str]:
    """
    Table names a foreign key base name may refer to, in resolution order.

    Example:
        >>> candidate_table_names("category")
        ['category', 'categorys', 'categoryes', 'categories']
        >>> candidate_table_names("users")
        ['users', 'userss', 'userses', 'user']
    """
    candidates = [base_name, f"{base_name}s", f"{base_name}es"]
    if base_name.endswith("y"):
        candidates.append(f"{base_name[:-1]}ies")
    if base_name.endswith("s"):
        candidates.append(base_name[:-1])
    return candidates


def is_identifier_type(source_type: str) -> bool:
    """Check if a column type can plausibly hold a reference to another row."""
    base_type, is_array = split_array_type(source_type)
    if is_array:
        return False
    return base_type.lower() in ForeignKeyConventions.IDENTIFIER_TYPES


class ForeignKeyInferencer:
    """
    Infers undeclared foreign keys from column naming conventions.

    A column ``author_id`` of an identifier-like type references ``authors``
    (or ``author``, ``authores``, ...) when such a table exists. Explicitly
    declared foreign keys always win and are never replaced.
    """

    def __init__(self, suffix: str = ForeignKeyConventions.SUFFIX,
                 referenced_column: str = ForeignKeyConventions.PRIMARY_KEY_NAME):
        self.suffix = suffix
        self.referenced_column = referenced_column

    def infer(self, snapshot: SchemaSnapshot) -> SchemaSnapshot:
        """
        Return a new snapshot with inferred foreign keys attached.

        Args:
            snapshot: Snapshot whose columns may lack foreign key data

        Returns:
            A new snapshot; the input is left untouched
        """
        table_names = set(snapshot.names)
        inferred_tables = [self.infer_table(table, table_names) for table in snapshot]
        return SchemaSnapshot(inferred_tables)

    def infer_table(self, table: Table, table_names: Iterable[str]) -> Table:
        """Infer foreign keys for a single table against the given table names."""
        known_tables = table_names if isinstance(table_names, (set, frozenset)) else set(table_names)

        changed = False
        columns: List[Column] = []
        for column in table.columns:
            foreign_key = self._infer_column(column, known_tables)
            if foreign_key is not None:
                logger.debug(
                    f"Inferred relationship {table.name}.{column.name} -> "
                    f"{foreign_key.referenced_table}.{foreign_key.referenced_column}"
                )
                column = column.with_foreign_key(foreign_key)
                changed = True
            columns.append(column)

        return table.with_columns(columns) if changed else table

    def resolve_table(self, base_name: str, table_names: Set[str]) -> Optional[str]:
        """Resolve a base name to an existing table; first candidate wins."""
        for candidate in candidate_table_names(base_name):
            if candidate in table_names:
                return candidate
        return None

    def _infer_column(self, column: Column, table_names: Set[str]) -> Optional[ForeignKey]:
        if column.foreign_key is not None:
            return None

        name = column.name
        if not name.endswith(self.suffix) or name == self.suffix:
            return None

        base_name = name[:-len(self.suffix)]
        referenced_table = self.resolve_table(base_name, table_names)
        if referenced_table is None:
            return None

        if not is_identifier_type(column.source_type):
            logger.debug(
                f"Column '{name}' matches table '{referenced_table}' but type "
                f"'{column.source_type}' is not an identifier type; skipping"
            )
            return None

        return ForeignKey(
            column=name,
            referenced_table=referenced_table,
            referenced_column=self.referenced_column,
        )
