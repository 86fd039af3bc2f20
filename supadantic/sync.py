"""
Sync orchestration: fetch -> infer -> filter -> diff -> render -> write -> commit.

The cache is only updated after every payload has been rendered and
written, so an interrupted run never marks a table as generated when its
module was not written. The worst case is that some tables get regenerated
on the next run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .ast_codegen.manifest import ManifestEmitter
from .ast_codegen.models import ModelEmitter
from .colored_logging import log_highlight, log_progress, log_section, log_success
from .config_validation import FetchMode, SyncConfig
from .domain.models import SchemaDiff, SchemaSnapshot
from .domain.relationships import ForeignKeyInferencer
from .domain.type_mapper import TypeMapper
from .exceptions import ConfigurationError, NoCacheAvailableError, SchemaFetchError
from .filesystem import FileSystem, LocalFileSystem
from .introspection_postgrest import PostgrestSchemaFetcher
from .schema_cache import ContentCache

logger = logging.getLogger(__name__)


SOURCE_FETCH = "fetch"
SOURCE_CACHE = "cache"


@dataclass
class SyncResult:
    """What a sync run generated and removed."""

    generated: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    source: str = SOURCE_FETCH
    written_paths: List[Path] = field(default_factory=list)
    deleted_paths: List[Path] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.generated) or bool(self.removed)


@dataclass
class _SchemaSource:
    snapshot: SchemaSnapshot
    enums: Dict[str, List[str]]
    source: str
    # Set when the live fetch failed and the cached snapshot stands in
    is_fallback: bool = False


class SchemaSync:
    """Runs one incremental generation pass for a configuration."""

    def __init__(
        self,
        config: SyncConfig,
        fetcher: Optional[PostgrestSchemaFetcher] = None,
        cache: Optional[ContentCache] = None,
        filesystem: Optional[FileSystem] = None,
        inferencer: Optional[ForeignKeyInferencer] = None,
        fetcher_factory: Optional[Callable[[SyncConfig], PostgrestSchemaFetcher]] = None,
    ):
        self.config = config
        self._fetcher = fetcher
        self._fetcher_factory = fetcher_factory or self._default_fetcher
        self.cache = cache or ContentCache(config.cache_dir)
        self.filesystem = filesystem or LocalFileSystem()
        self.inferencer = inferencer or ForeignKeyInferencer()

    @staticmethod
    def _default_fetcher(config: SyncConfig) -> PostgrestSchemaFetcher:
        return PostgrestSchemaFetcher(config.url, config.secret_key, schema=config.db_schema)

    @property
    def fetcher(self) -> PostgrestSchemaFetcher:
        if self._fetcher is None:
            self._fetcher = self._fetcher_factory(self.config)
        return self._fetcher

    @property
    def output_dir(self) -> Path:
        return Path(self.config.output)

    # --- Steps ---

    def validate_config(self) -> None:
        issues = self.config.collect_issues(require_credentials=self.config.requires_credentials)
        if issues:
            raise ConfigurationError("Invalid configuration", issues=issues)

    def load_schema(self) -> _SchemaSource:
        """Choose the schema source according to the fetch mode."""
        mode = self.config.fetch

        if mode == FetchMode.NEVER:
            cached = self.cache.load_snapshot()
            if cached is None:
                raise NoCacheAvailableError(
                    "No cached schema available and fetching is disabled (fetch: never)",
                    cache_dir=str(self.cache.cache_dir),
                )
            log_highlight(logger, "Using cached schema (fetch: never)")
            return _SchemaSource(cached, self.cache.load_enums(), SOURCE_CACHE)

        if mode == FetchMode.IF_NO_CACHE:
            cached = self.cache.load_snapshot()
            if cached is not None:
                log_highlight(logger, "Using cached schema (fetch: if_no_cache)")
                return _SchemaSource(cached, self.cache.load_enums(), SOURCE_CACHE)

        try:
            log_progress(logger, f"Fetching schema '{self.config.db_schema}' from the Data API")
            snapshot = self.fetcher.fetch()
        except SchemaFetchError as e:
            logger.warning(f"Schema fetch failed: {e.message}")
            cached = self.cache.load_snapshot()
            if cached is None:
                raise
            logger.warning("Falling back to the cached schema; dropped tables cannot be detected on this run")
            return _SchemaSource(cached, self.cache.load_enums(), SOURCE_CACHE, is_fallback=True)

        return _SchemaSource(snapshot, self.fetcher.detected_enums, SOURCE_FETCH)

    def compute_diff(self, in_scope: SchemaSnapshot, force: bool, is_fallback: bool) -> SchemaDiff:
        if is_fallback:
            # Without a fresh fetch there is no way to know which tables were dropped
            return SchemaDiff(to_generate=tuple(in_scope), to_remove=())

        diff = self.cache.compute_diff(in_scope)
        if force:
            return SchemaDiff(to_generate=tuple(in_scope), to_remove=diff.to_remove)
        return diff

    def render(self, diff: SchemaDiff, in_scope: SchemaSnapshot,
               type_mapper: TypeMapper) -> List[Tuple[Path, str]]:
        """Render every payload before anything touches the disk."""
        emitter = ModelEmitter.from_config(type_mapper, self.config)
        all_tables = in_scope.as_mapping()

        payloads = []
        for table in diff.to_generate:
            logger.debug(f"Rendering model for table '{table.name}'")
            payloads.append((self.output_dir / emitter.file_name(table.name), emitter.render(table, all_tables)))

        if self.config.generate_manifest:
            manifest = ManifestEmitter(singular_class_names=self.config.singular_class_names)
            payloads.append((self.output_dir / manifest.file_name, manifest.render(in_scope.names)))

        return payloads

    def remove_artifacts(self, table_names: Tuple[str, ...]) -> List[Path]:
        emitter = ModelEmitter(TypeMapper())
        deleted = []
        for table_name in table_names:
            for artifact in emitter.artifact_paths(table_name):
                path = self.output_dir / artifact
                if self.filesystem.delete(path):
                    deleted.append(path)
            log_highlight(logger, f"Removed model for dropped table '{table_name}'")
        return deleted

    # --- Run ---

    def run(self, force: bool = False) -> SyncResult:
        """
        Run one sync pass.

        Args:
            force: Regenerate every in-scope table, ignoring digests

        Raises:
            ConfigurationError: Before any fetch, when the configuration is unusable
            NoCacheAvailableError: In ``never`` mode without a cached schema
            SchemaFetchError: When the fetch fails and no cached schema exists
        """
        log_section(logger, "Schema sync")
        self.validate_config()

        schema = self.load_schema()

        type_mapper = TypeMapper()
        for name, values in schema.enums.items():
            type_mapper.register_enum(name, values)

        inferred = self.inferencer.infer(schema.snapshot)
        in_scope = inferred.filter(self.config.should_include_table)
        if len(in_scope) != len(inferred):
            log_highlight(logger, f"{len(inferred) - len(in_scope)} tables excluded by configuration")

        diff = self.compute_diff(in_scope, force=force, is_fallback=schema.is_fallback)
        result = SyncResult(source=schema.source)

        if not diff.has_changes:
            log_success(logger, f"All {len(in_scope)} models are up to date")
            return result

        log_progress(logger, f"Generating {len(diff.to_generate)} models, removing {len(diff.to_remove)}")
        payloads = self.render(diff, in_scope, type_mapper)

        for path, content in payloads:
            self.filesystem.write_text(path, content)
            result.written_paths.append(path)

        result.deleted_paths.extend(self.remove_artifacts(diff.to_remove))

        self.cache.commit(diff.to_generate)
        for table_name in diff.to_remove:
            self.cache.remove_entry(table_name)
        if schema.source == SOURCE_FETCH:
            self.cache.persist_snapshot(schema.snapshot)
            self.cache.persist_enums(schema.enums)

        result.generated = diff.generate_names
        result.removed = list(diff.to_remove)
        log_success(logger, f"Generated {len(result.generated)} models into {self.output_dir}")
        return result
