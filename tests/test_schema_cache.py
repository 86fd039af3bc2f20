"""
Tests for the content-addressed schema cache.
"""

import json

import pytest

from supadantic.domain.models import Column, ForeignKey, SchemaSnapshot, Table
from supadantic.schema_cache import ContentCache, table_digest


class TestTableDigest:
    """Test cases for table_digest"""

    def test_digest_is_hex_sha256(self, users_table):
        digest = table_digest(users_table)
        assert len(digest) == 64
        int(digest, 16)

    def test_digest_is_stable(self, users_table):
        assert table_digest(users_table) == table_digest(Table.from_dict(users_table.to_dict()))

    def test_foreign_keys_do_not_change_digest(self, posts_table):
        linked = posts_table.with_columns(
            column.with_foreign_key(ForeignKey("user_id", "users")) if column.name == "user_id" else column
            for column in posts_table.columns
        )
        assert table_digest(linked) == table_digest(posts_table)

    @pytest.mark.parametrize("changed", [
        Column("email", "varchar", nullable=False),
        Column("email", "text", nullable=True),
        Column("email", "text", nullable=False, default="''::text"),
        Column("email", "text", nullable=False, is_primary_key=True),
        Column("mail", "text", nullable=False),
    ])
    def test_declared_properties_change_digest(self, users_table, changed):
        columns = [changed if column.name == "email" else column for column in users_table.columns]
        assert table_digest(users_table.with_columns(columns)) != table_digest(users_table)

    def test_column_order_changes_digest(self, users_table):
        reordered = users_table.with_columns(reversed(users_table.columns))
        assert table_digest(reordered) != table_digest(users_table)

    def test_table_name_changes_digest(self, users_table):
        renamed = Table("members", users_table.columns)
        assert table_digest(renamed) != table_digest(users_table)


class TestDiffAndCommit:
    """Test cases for ContentCache digests"""

    def test_first_run_generates_everything(self, cache, blog_snapshot):
        diff = cache.compute_diff(blog_snapshot)

        assert diff.generate_names == ["posts", "users"]
        assert diff.to_remove == ()

    def test_commit_then_diff_is_empty(self, cache, blog_snapshot):
        cache.commit(blog_snapshot)
        assert not cache.compute_diff(blog_snapshot).has_changes

    def test_dropped_table_is_removed(self, cache, blog_snapshot, users_table):
        cache.commit(blog_snapshot)
        diff = cache.compute_diff([users_table])

        assert diff.to_generate == ()
        assert diff.to_remove == ("posts",)

    def test_empty_schema_removes_everything(self, cache, blog_snapshot):
        cache.commit(blog_snapshot)
        assert cache.compute_diff([]).to_remove == ("posts", "users")

    def test_changed_table_is_regenerated(self, cache, blog_snapshot, posts_table):
        cache.commit(blog_snapshot)
        changed = posts_table.with_columns(posts_table.columns + (Column("body", "text"),))
        snapshot = blog_snapshot.replace_tables([changed])

        assert cache.compute_diff(snapshot).generate_names == ["posts"]

    def test_commit_only_touches_given_tables(self, cache, users_table, posts_table):
        cache.commit([users_table])
        cache.commit([posts_table])

        assert set(cache.load_digests()) == {"users", "posts"}

    def test_remove_entry(self, cache, blog_snapshot):
        cache.commit(blog_snapshot)
        cache.remove_entry("posts")
        cache.remove_entry("never_generated")

        assert set(cache.load_digests()) == {"users"}

    def test_clear_digests(self, cache, blog_snapshot):
        cache.commit(blog_snapshot)
        cache.clear_digests()

        assert cache.load_digests() == {}
        assert not cache.digests_path.exists()

    def test_digest_file_is_sorted_json(self, cache, blog_snapshot):
        cache.commit(blog_snapshot)
        data = json.loads(cache.digests_path.read_text(encoding="utf-8"))

        assert list(data) == ["posts", "users"]


class TestCorruptState:
    """Missing or corrupt cache files read as an empty cache."""

    def test_missing_files(self, cache):
        assert cache.load_digests() == {}
        assert cache.load_snapshot() is None
        assert cache.load_enums() == {}
        assert not cache.has_snapshot()

    @pytest.mark.parametrize("content", ["", "   \n", "{not json", "[1, 2, 3]", '{"users": 5}'])
    def test_corrupt_digests(self, cache, content):
        cache.cache_dir.mkdir(parents=True)
        cache.digests_path.write_text(content, encoding="utf-8")

        assert cache.load_digests() == {}

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        '{"tables": 5}',
        '{"tables": [{"columns": []}]}',
        '{"tables": [{"name": 7, "columns": []}]}',
        '{"tables": [{"name": "posts", "columns": [{"name": "user_id", "source_type": null}]}]}',
        '{"tables": [{"name": "posts", "columns": [{"name": "id", "source_type": "int8", "nullable": "false"}]}]}',
        '{"tables": [{"name": "posts", "columns": [{"name": "id", "source_type": "int8", "default": 5}]}]}',
    ])
    def test_corrupt_snapshot(self, cache, content):
        cache.cache_dir.mkdir(parents=True)
        cache.snapshot_path.write_text(content, encoding="utf-8")

        assert cache.load_snapshot() is None

    def test_corrupt_enums(self, cache):
        cache.cache_dir.mkdir(parents=True)
        cache.enums_path.write_text('{"mood": "happy"}', encoding="utf-8")

        assert cache.load_enums() == {}

    def test_corrupt_digests_regenerate_everything(self, cache, blog_snapshot):
        cache.cache_dir.mkdir(parents=True)
        cache.digests_path.write_text("{oops", encoding="utf-8")

        assert cache.compute_diff(blog_snapshot).generate_names == ["posts", "users"]


class TestSnapshotAndEnums:
    """Test cases for the persisted snapshot and enum registry"""

    def test_snapshot_round_trip(self, cache, blog_snapshot):
        cache.persist_snapshot(blog_snapshot)

        assert cache.has_snapshot()
        assert cache.load_snapshot() == blog_snapshot

    def test_snapshot_drops_foreign_keys(self, cache, users_table):
        linked = Table("posts", (Column("user_id", "uuid", foreign_key=ForeignKey("user_id", "users")),))
        cache.persist_snapshot([users_table, linked])

        assert cache.load_snapshot().get("posts").foreign_keys == []

    def test_snapshot_is_independent_of_digests(self, cache, blog_snapshot):
        cache.persist_snapshot(blog_snapshot)
        cache.clear_digests()

        assert cache.load_snapshot() == blog_snapshot
        assert cache.load_digests() == {}

    def test_enums_round_trip(self, cache):
        cache.persist_enums({"mood": ["sad", "happy"], "order_status": ["pending"]})
        assert cache.load_enums() == {"mood": ["sad", "happy"], "order_status": ["pending"]}

    def test_clear_removes_directory(self, cache, blog_snapshot):
        cache.commit(blog_snapshot)
        cache.persist_snapshot(blog_snapshot)
        cache.clear()

        assert not cache.cache_dir.exists()
        assert cache.load_snapshot() is None

    def test_clear_without_directory(self, tmp_path):
        ContentCache(tmp_path / "missing").clear()

    def test_default_cache_dir(self):
        assert str(ContentCache().cache_dir) == ".supadantic"

    def test_atomic_write_leaves_no_temp_files(self, cache, blog_snapshot):
        cache.commit(blog_snapshot)
        cache.persist_snapshot(blog_snapshot)

        assert sorted(path.name for path in cache.cache_dir.iterdir()) == sorted(
            [cache.digests_path.name, cache.snapshot_path.name]
        )


def test_snapshot_of_empty_schema(cache):
    cache.persist_snapshot(SchemaSnapshot())
    assert cache.load_snapshot() == SchemaSnapshot()
