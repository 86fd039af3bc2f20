"""
Content-addressed schema cache.

Keeps, under the cache directory, one SHA-256 digest per generated table,
the last full schema snapshot and the enum types seen during the last fetch.
Digests decide which tables need regeneration; the snapshot is the fallback
dataset when the Data API cannot be (or should not be) queried.

Every file may be missing or corrupt: that is read as "no prior state",
never as an error.
"""

import hashlib
import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .constants import CacheFiles, DefaultConfig
from .domain.models import SchemaDiff, SchemaSnapshot, Table
from .filesystem import write_text_atomic

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def table_digest(table: Table) -> str:
    """
    Compute the content digest of a table.

    Only declared properties participate (name, and per column its name,
    type, nullability, primary key flag and default, in source order).
    Foreign keys are excluded, so inference changes elsewhere in the schema
    never alter a table's digest.
    """
    lines = [f"table:{table.name}"]
    for column in table.columns:
        lines.append(
            "  column:" + "|".join([
                column.name,
                column.source_type,
                _format_value(column.nullable),
                _format_value(column.is_primary_key),
                _format_value(column.default),
            ])
        )
    payload = "\n".join(lines)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ContentCache:
    """Persisted digests, schema snapshot and enums for incremental generation."""

    def __init__(self, cache_dir: Union[str, Path] = DefaultConfig.CACHE_DIR):
        self.cache_dir = Path(cache_dir)

    @property
    def digests_path(self) -> Path:
        return self.cache_dir / CacheFiles.TABLE_HASHES

    @property
    def snapshot_path(self) -> Path:
        return self.cache_dir / CacheFiles.SCHEMA_SNAPSHOT

    @property
    def enums_path(self) -> Path:
        return self.cache_dir / CacheFiles.ENUMS

    # --- Digests ---

    @staticmethod
    def digest(table: Table) -> str:
        return table_digest(table)

    def load_digests(self) -> Dict[str, str]:
        """Load the table -> digest map; empty when missing or corrupt."""
        data = self._read_json(self.digests_path)
        if data is None:
            return {}
        if not isinstance(data, dict) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in data.items()
        ):
            logger.warning(f"Ignoring malformed digest cache: {self.digests_path}")
            return {}
        return data

    def compute_diff(self, tables: Iterable[Table]) -> SchemaDiff:
        """
        Compare tables with the persisted digests.

        Returns:
            Tables whose digest is new or changed, and names of previously
            generated tables that are no longer present
        """
        previous = self.load_digests()
        current_tables = list(tables)
        current_names = {table.name for table in current_tables}

        to_generate = [
            table for table in current_tables
            if previous.get(table.name) != table_digest(table)
        ]
        to_remove = sorted(name for name in previous if name not in current_names)

        logger.debug(
            f"Schema diff: {len(to_generate)} to generate, {len(to_remove)} to remove, "
            f"{len(current_tables) - len(to_generate)} unchanged"
        )
        return SchemaDiff(to_generate=tuple(to_generate), to_remove=tuple(to_remove))

    def commit(self, tables: Iterable[Table]) -> None:
        """Record digests for exactly the given tables, leaving other entries as they are."""
        digests = self.load_digests()
        for table in tables:
            digests[table.name] = table_digest(table)
        self._write_json(self.digests_path, digests)

    def remove_entry(self, table_name: str) -> None:
        digests = self.load_digests()
        if digests.pop(table_name, None) is not None:
            self._write_json(self.digests_path, digests)

    def clear_digests(self) -> None:
        if self.digests_path.exists():
            self.digests_path.unlink()

    # --- Snapshot ---

    def has_snapshot(self) -> bool:
        return self.load_snapshot() is not None

    def persist_snapshot(self, tables: Iterable[Table]) -> None:
        """Store the full schema; independent of the digest map."""
        payload = {'tables': [table.to_dict() for table in tables]}
        self._write_json(self.snapshot_path, payload)

    def load_snapshot(self) -> Optional[SchemaSnapshot]:
        """Load the persisted schema, or None when missing or corrupt."""
        data = self._read_json(self.snapshot_path)
        if data is None:
            return None
        try:
            return SchemaSnapshot(Table.from_dict(table) for table in data['tables'])
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed schema snapshot {self.snapshot_path}: {e}")
            return None

    # --- Enums ---

    def persist_enums(self, enums: Dict[str, List[str]]) -> None:
        self._write_json(self.enums_path, {name: list(values) for name, values in sorted(enums.items())})

    def load_enums(self) -> Dict[str, List[str]]:
        data = self._read_json(self.enums_path)
        if data is None:
            return {}
        if not isinstance(data, dict) or not all(isinstance(values, list) for values in data.values()):
            logger.warning(f"Ignoring malformed enum cache: {self.enums_path}")
            return {}
        return {str(name): [str(value) for value in values] for name, values in data.items()}

    def clear(self) -> None:
        """Delete the whole cache directory."""
        if self.cache_dir.exists():
            shutil.rmtree(self.cache_dir)
            logger.info(f"Cleared cache directory {self.cache_dir}")

    # --- Helpers ---

    def _read_json(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not read cache file {path}: {e}")
            return None
        if not content.strip():
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupt cache file {path}: {e}")
            return None

    def _write_json(self, path: Path, data: Any) -> None:
        write_text_atomic(path, json.dumps(data, indent=2, sort_keys=True) + "\n")
