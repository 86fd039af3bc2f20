# File: tests/conftest.py
# Shared fixtures: sample tables, an in-memory filesystem and a fake schema fetcher.

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from supadantic.config_validation import SyncConfig
from supadantic.domain.models import Column, SchemaSnapshot, Table
from supadantic.exceptions import SchemaFetchError
from supadantic.schema_cache import ContentCache


SECRET_KEY = "service-role-key-for-tests-0123456789"


class InMemoryFileSystem:
    """FileSystem double that records writes and deletions."""

    def __init__(self):
        self.files: Dict[str, str] = {}
        self.writes: List[str] = []
        self.deletes: List[str] = []

    def write_text(self, path, content: str) -> None:
        key = str(Path(path))
        self.files[key] = content
        self.writes.append(key)

    def delete(self, path) -> bool:
        key = str(Path(path))
        self.deletes.append(key)
        return self.files.pop(key, None) is not None

    def read(self, path) -> str:
        return self.files[str(Path(path))]

    def exists(self, path) -> bool:
        return str(Path(path)) in self.files


class FakeFetcher:
    """Schema fetcher double returning a fixed snapshot, or failing."""

    def __init__(self, snapshot: Optional[SchemaSnapshot] = None,
                 enums: Optional[Dict[str, List[str]]] = None,
                 error: Optional[Exception] = None):
        self.snapshot = snapshot if snapshot is not None else SchemaSnapshot()
        self.enums = enums or {}
        self.error = error
        self.calls = 0

    def fetch(self) -> SchemaSnapshot:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.snapshot

    @property
    def detected_enums(self) -> Dict[str, List[str]]:
        return {name: list(values) for name, values in self.enums.items()}


def build_users_table() -> Table:
    return Table(
        name="users",
        columns=(
            Column("id", "uuid", nullable=False, default="gen_random_uuid()", is_primary_key=True),
            Column("email", "text", nullable=False),
            Column("created_at", "timestamptz", nullable=False, default="now()"),
        ),
    )


def build_posts_table() -> Table:
    return Table(
        name="posts",
        columns=(
            Column("id", "int8", nullable=False, is_primary_key=True),
            Column("title", "text", nullable=False),
            Column("user_id", "uuid", nullable=False),
            Column("color_id", "text", nullable=True),
        ),
    )


@pytest.fixture
def users_table() -> Table:
    return build_users_table()


@pytest.fixture
def posts_table() -> Table:
    return build_posts_table()


@pytest.fixture
def blog_snapshot() -> SchemaSnapshot:
    return SchemaSnapshot([build_users_table(), build_posts_table()])


@pytest.fixture
def memory_fs() -> InMemoryFileSystem:
    return InMemoryFileSystem()


@pytest.fixture
def fake_fetcher_factory():
    """Returns the FakeFetcher class so tests can build fetchers with their own data."""
    return FakeFetcher


@pytest.fixture
def fetch_error() -> SchemaFetchError:
    return SchemaFetchError("Failed to fetch OpenAPI spec", status_code=503, response_body="unavailable")


@pytest.fixture
def cache(tmp_path) -> ContentCache:
    return ContentCache(tmp_path / ".supadantic")


@pytest.fixture
def sync_config(tmp_path) -> SyncConfig:
    return SyncConfig(
        url="https://example.supabase.co",
        secret_key=SECRET_KEY,
        output=str(tmp_path / "models"),
        cache_dir=str(tmp_path / ".supadantic"),
        generate_manifest=True,
        embed_relations=True,
    )
