"""
Core domain models for supadantic.

These models describe the schema as it was observed in one fetch cycle.
They are immutable value objects: foreign-key inference and filtering
always produce new instances instead of mutating existing ones.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..constants import ForeignKeyConventions


_MISSING = object()


def _expect(data: Dict[str, Any], key: str, kind: type, default: Any = _MISSING) -> Any:
    """Read ``key`` from persisted data, requiring a value of type ``kind``."""
    if key not in data:
        if default is _MISSING:
            raise ValueError(f"Missing required field '{key}'")
        return default
    value = data[key]
    if not isinstance(value, kind):
        raise ValueError(f"Field '{key}' must be {kind.__name__}, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class ForeignKey:
    """A directed edge from a column to the table it references."""

    column: str
    referenced_table: str
    referenced_column: str = ForeignKeyConventions.PRIMARY_KEY_NAME
    is_one_to_one: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'column': self.column,
            'referenced_table': self.referenced_table,
            'referenced_column': self.referenced_column,
            'is_one_to_one': self.is_one_to_one,
        }


@dataclass(frozen=True)
class Column:
    """
    Represents a table column.

    ``source_type`` is the raw type tag reported by the source and may carry
    a trailing ``[]`` array marker. ``default`` is the raw default expression
    (e.g. ``'draft'::text`` or ``now()``), or None when the column has none.
    """

    name: str
    source_type: str
    nullable: bool = True
    default: Optional[str] = None
    is_primary_key: bool = False
    foreign_key: Optional[ForeignKey] = None

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def is_foreign_key(self) -> bool:
        return self.foreign_key is not None

    def with_foreign_key(self, foreign_key: Optional[ForeignKey]) -> "Column":
        """Return a copy of this column carrying the given foreign key."""
        return replace(self, foreign_key=foreign_key)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the persisted dictionary representation.

        Foreign keys are not persisted; they are re-derived on every run.
        """
        return {
            'name': self.name,
            'source_type': self.source_type,
            'nullable': self.nullable,
            'default': self.default,
            'is_primary_key': self.is_primary_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        """
        Rebuild a column from its persisted representation.

        Raises ValueError when a field has the wrong type.
        """
        name = _expect(data, 'name', str)
        source_type = _expect(data, 'source_type', str)
        nullable = _expect(data, 'nullable', bool, True)
        is_primary_key = _expect(data, 'is_primary_key', bool, False)
        default = data.get('default')
        if default is not None and not isinstance(default, str):
            raise ValueError(f"Column '{name}': default must be a string or null, got {type(default).__name__}")
        return cls(
            name=name,
            source_type=source_type,
            nullable=nullable,
            default=default,
            is_primary_key=is_primary_key,
        )


@dataclass(frozen=True)
class Table:
    """
    Represents a table with its columns in source order.

    Column order is significant for digests and relation ordering, but not
    for scalar field ordering in generated code.
    """

    name: str
    columns: Tuple[Column, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept any iterable but store a tuple so the table stays hashable
        if not isinstance(self.columns, tuple):
            object.__setattr__(self, 'columns', tuple(self.columns))

        seen = set()
        for column in self.columns:
            if column.name in seen:
                raise ValueError(f"Duplicate column '{column.name}' in table '{self.name}'")
            seen.add(column.name)

    @property
    def foreign_keys(self) -> List[ForeignKey]:
        """Foreign keys declared or inferred on this table, in column order."""
        return [column.foreign_key for column in self.columns if column.foreign_key is not None]

    @property
    def primary_key_columns(self) -> List[Column]:
        return [column for column in self.columns if column.is_primary_key]

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def get_column(self, name: str) -> Optional[Column]:
        """Get column by name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def with_columns(self, columns: Iterable[Column]) -> "Table":
        """Return a copy of this table with a new column sequence."""
        return Table(name=self.name, columns=tuple(columns))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted dictionary representation."""
        return {
            'name': self.name,
            'columns': [column.to_dict() for column in self.columns],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Table":
        return cls(
            name=_expect(data, 'name', str),
            columns=tuple(Column.from_dict(column) for column in data.get('columns', [])),
        )


class SchemaSnapshot:
    """
    The complete set of tables observed in one fetch cycle.

    Tables are keyed by name and always iterated in lexicographic name order,
    so every consumer sees the same sequence regardless of how the snapshot
    was built.
    """

    def __init__(self, tables: Iterable[Table] = ()):
        by_name: Dict[str, Table] = {}
        for table in tables:
            if table.name in by_name:
                raise ValueError(f"Duplicate table '{table.name}' in schema snapshot")
            by_name[table.name] = table
        self._tables = {name: by_name[name] for name in sorted(by_name)}

    def __iter__(self) -> Iterator[Table]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SchemaSnapshot):
            return NotImplemented
        return self._tables == other._tables

    def __repr__(self) -> str:
        return f"SchemaSnapshot({list(self._tables)})"

    @property
    def tables(self) -> List[Table]:
        return list(self._tables.values())

    @property
    def names(self) -> List[str]:
        return list(self._tables)

    def get(self, name: str) -> Optional[Table]:
        return self._tables.get(name)

    def as_mapping(self) -> Dict[str, Table]:
        """Return a name -> table copy, suitable as a read-only lookup."""
        return dict(self._tables)

    def filter(self, predicate: Callable[[str], bool]) -> "SchemaSnapshot":
        """Return a new snapshot holding only tables whose name matches ``predicate``."""
        return SchemaSnapshot(table for table in self if predicate(table.name))

    def replace_tables(self, tables: Iterable[Table]) -> "SchemaSnapshot":
        """Return a new snapshot with the given tables substituted by name."""
        merged = dict(self._tables)
        for table in tables:
            merged[table.name] = table
        return SchemaSnapshot(merged.values())

    def to_dict(self) -> Dict[str, Any]:
        return {'tables': [table.to_dict() for table in self]}


@dataclass(frozen=True)
class SchemaDiff:
    """Outcome of comparing a snapshot with the persisted digests."""

    to_generate: Tuple[Table, ...] = ()
    to_remove: Tuple[str, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.to_generate) or bool(self.to_remove)

    @property
    def generate_names(self) -> List[str]:
        return [table.name for table in self.to_generate]
