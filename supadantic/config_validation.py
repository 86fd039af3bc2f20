import logging
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from dotenv import dotenv_values
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .constants import DefaultConfig
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class FetchMode(str, Enum):
    """When the live schema is fetched instead of reading the cached snapshot."""

    ALWAYS = "always"
    IF_NO_CACHE = "if_no_cache"
    NEVER = "never"


_FETCH_MODE_ALIASES = {
    "always": FetchMode.ALWAYS,
    "if_no_cache": FetchMode.IF_NO_CACHE,
    "ifnocache": FetchMode.IF_NO_CACHE,
    "never": FetchMode.NEVER,
}


def parse_fetch_mode(value: Any) -> FetchMode:
    """
    Parse a fetch mode, defaulting to ``always`` for missing or unknown values.

    Example:
        >>> parse_fetch_mode("IfNoCache")
        <FetchMode.IF_NO_CACHE: 'if_no_cache'>
    """
    if isinstance(value, FetchMode):
        return value
    if value is None:
        return FetchMode(DefaultConfig.FETCH_MODE)
    mode = _FETCH_MODE_ALIASES.get(str(value).strip().lower())
    if mode is None:
        logger.warning(f"Unknown fetch mode '{value}', using '{DefaultConfig.FETCH_MODE}'")
        return FetchMode(DefaultConfig.FETCH_MODE)
    return mode


# --- Variable Substitution ---

_AUTO_PATTERN = re.compile(r"\$\{(\w+)\}")
_ENV_PATTERN = re.compile(r"\$env\{(\w+)\}")
_DOTENV_PATTERN = re.compile(r"\$dotenv\{(\w+)\}")


class VariableResolver:
    """
    Resolves variable references inside configuration values.

    Supported forms:
        ``${VAR}``        .env file first, then the process environment
        ``$env{VAR}``     process environment only
        ``$dotenv{VAR}``  .env file only

    Unknown variables resolve to an empty string.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None,
                 dotenv: Optional[Mapping[str, Optional[str]]] = None):
        self.environ = dict(os.environ if environ is None else environ)
        self.dotenv = {key: value for key, value in (dotenv or {}).items() if value is not None}

    @classmethod
    def from_dotenv_file(cls, dotenv_path: Union[str, Path] = DefaultConfig.DOTENV_FILE,
                         environ: Optional[Mapping[str, str]] = None) -> "VariableResolver":
        path = Path(dotenv_path)
        dotenv = dotenv_values(path) if path.is_file() else {}
        if dotenv:
            logger.debug(f"Loaded {len(dotenv)} variables from {path}")
        return cls(environ=environ, dotenv=dotenv)

    def get(self, name: str) -> Optional[str]:
        if name in self.dotenv:
            return self.dotenv[name]
        return self.environ.get(name)

    def resolve(self, value: Optional[str]) -> Optional[str]:
        """Substitute variable references; an empty result becomes None."""
        if value is None:
            return None

        result = _AUTO_PATTERN.sub(lambda match: self.get(match.group(1)) or "", value)
        result = _ENV_PATTERN.sub(lambda match: self.environ.get(match.group(1)) or "", result)
        result = _DOTENV_PATTERN.sub(lambda match: self.dotenv.get(match.group(1)) or "", result)
        return result or None


# --- Pydantic Models for Configuration Schema ---

class RelationOverride(BaseModel):
    """Per-relation embedding override."""

    enabled: bool = Field(default=True, description="Whether the relation is embedded.")
    table: Optional[str] = Field(default=None, description="Target table instead of the foreign key's table.")
    foreign_key: Optional[str] = Field(default=None, description="Foreign key column to report.")
    referenced_column: Optional[str] = Field(default=None, description="Referenced column to report.")

    model_config = ConfigDict(extra="ignore", frozen=True)


class SyncConfig(BaseModel):
    """Pydantic schema for ``supadantic.yaml``."""

    url: Optional[str] = Field(default=None, description="Data API base URL (https://<project>.supabase.co).")
    secret_key: Optional[str] = Field(default=None, description="service_role key used to read the schema.")
    output: str = Field(default=DefaultConfig.OUTPUT_DIR, min_length=1, description="Output package directory.")
    db_schema: str = Field(
        default=DefaultConfig.SCHEMA,
        min_length=1,
        validation_alias=AliasChoices("schema", "db_schema"),
        description="Database schema to read.",
    )
    include: Optional[List[str]] = Field(default=None, description="Only generate these tables.")
    exclude: Optional[List[str]] = Field(default=None, description="Generate every table except these.")
    fetch: FetchMode = Field(default=FetchMode(DefaultConfig.FETCH_MODE), description="When to query the Data API.")
    generate_manifest: bool = Field(
        default=False,
        validation_alias=AliasChoices("generate_manifest", "generate_barrel"),
        description="Write a package __init__.py exporting every model.",
    )
    embed_relations: bool = Field(default=False, description="Embed related models as extra fields.")
    relations: Dict[str, Dict[str, RelationOverride]] = Field(
        default_factory=dict,
        description="Per-table, per-relation embedding overrides.",
    )
    cache_dir: str = Field(default=DefaultConfig.CACHE_DIR, min_length=1, description="Cache directory.")
    singular_class_names: bool = Field(default=False, description="Singularize table names for class names.")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access."""
        return getattr(self, key)

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self, key, default)

    # --- Custom Field Validators ---

    @field_validator("fetch", mode="before")
    @classmethod
    def parse_fetch(cls, v: Any) -> FetchMode:
        return parse_fetch_mode(v)

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def check_table_names_list(cls, v: Any) -> Optional[List[str]]:
        """Ensure items in table lists are non-empty strings."""
        if v is None:
            return None
        if not isinstance(v, list):
            raise ValueError("include/exclude must be a list of table names.")
        processed_list = []
        for index, item in enumerate(v):
            stripped_item = str(item).strip()
            if not stripped_item:
                raise ValueError(f"Item at index {index} cannot be empty or just whitespace.")
            processed_list.append(stripped_item)
        return processed_list

    @field_validator("relations", mode="before")
    @classmethod
    def normalize_relations(cls, v: Any) -> Dict[str, Dict[str, Any]]:
        """Accept ``relation: false`` as shorthand for a disabled override."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("relations must be a mapping of table -> relation overrides.")
        normalized: Dict[str, Dict[str, Any]] = {}
        for table_name, overrides in v.items():
            if not isinstance(overrides, dict):
                continue
            table_overrides = {}
            for relation_name, override in overrides.items():
                if override is False:
                    table_overrides[str(relation_name)] = {"enabled": False}
                elif override is True:
                    table_overrides[str(relation_name)] = {"enabled": True}
                elif isinstance(override, dict):
                    table_overrides[str(relation_name)] = override
            normalized[str(table_name)] = table_overrides
        return normalized

    # --- Validation & Queries ---

    def collect_issues(self, require_credentials: bool = True) -> List[str]:
        """Return every configuration problem; empty when the configuration is usable."""
        issues = []

        if require_credentials:
            if not self.url:
                issues.append(
                    f"Data API URL is not configured. Set {DefaultConfig.URL_ENV_VAR} in .env or environment."
                )
            elif not self.url.startswith(DefaultConfig.REQUIRED_URL_SCHEME):
                issues.append(f"Data API URL should start with {DefaultConfig.REQUIRED_URL_SCHEME}")

            if not self.secret_key:
                issues.append(
                    f"Secret key is not configured. Set {DefaultConfig.SECRET_KEY_ENV_VAR} in .env or environment."
                )
            elif len(self.secret_key) < DefaultConfig.MIN_SECRET_KEY_LENGTH:
                issues.append("Secret key appears too short. Make sure you're using the service_role key.")

        if self.include and self.exclude:
            issues.append("Both include and exclude lists are specified. Use only one.")

        return issues

    def validate_for_fetch(self) -> List[str]:
        return self.collect_issues(require_credentials=True)

    @property
    def requires_credentials(self) -> bool:
        return self.fetch != FetchMode.NEVER

    def should_include_table(self, table_name: str) -> bool:
        """Apply the include list, else the exclude list, else include everything."""
        if self.include:
            return table_name in self.include
        if self.exclude:
            return table_name not in self.exclude
        return True


# --- Loading ---

# Top-level keys whose string values go through variable substitution
_RESOLVED_KEYS = ("url", "secret_key", "output", "schema", "fetch", "cache_dir")


def format_validation_errors(error: ValidationError) -> List[str]:
    """Flatten pydantic errors into ``location: message`` lines."""
    issues = []
    for item in error.errors():
        loc_parts = [str(loc_item) for loc_item in item.get("loc", ())]
        loc_str = " -> ".join(loc_parts) if loc_parts else "Model Level"
        issues.append(f"{loc_str}: {item.get('msg', 'Unknown validation error')}")
    return issues


def parse_config(raw_config: Dict[str, Any], resolver: Optional[VariableResolver] = None,
                 config_file: Optional[str] = None) -> SyncConfig:
    """
    Resolve variables in a raw configuration mapping and validate it.

    ``url`` and ``secret_key`` fall back to the ``SUPABASE_DATA_API_URL`` and
    ``SUPABASE_SECRET_KEY`` variables when the file does not set them.
    """
    resolver = resolver or VariableResolver()
    resolved = dict(raw_config)

    for key in _RESOLVED_KEYS:
        value = resolved.get(key)
        if isinstance(value, str):
            resolved[key] = resolver.resolve(value)

    if not resolved.get("url"):
        resolved["url"] = resolver.get(DefaultConfig.URL_ENV_VAR)
    if not resolved.get("secret_key"):
        resolved["secret_key"] = resolver.get(DefaultConfig.SECRET_KEY_ENV_VAR)

    try:
        config = SyncConfig.model_validate(resolved)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            config_file=config_file,
            issues=format_validation_errors(e),
        ) from e

    logger.debug("Configuration parsed and validated successfully against schema.")
    return config


def load_config(config_path: Union[str, Path] = DefaultConfig.CONFIG_FILE,
                dotenv_path: Union[str, Path] = DefaultConfig.DOTENV_FILE,
                environ: Optional[Mapping[str, str]] = None) -> SyncConfig:
    """
    Load ``supadantic.yaml``, substitute variables and validate the result.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML, or
            does not match the schema
    """
    config_file = Path(config_path)
    if not config_file.is_file():
        raise ConfigurationError(f"Config file not found: {config_file}", config_file=str(config_file))

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing YAML file {config_file}: {e}", config_file=str(config_file)) from e
    except OSError as e:
        raise ConfigurationError(f"Error reading config file {config_file}: {e}", config_file=str(config_file)) from e

    if yaml_config is None:
        yaml_config = {}
    if not isinstance(yaml_config, dict):
        raise ConfigurationError(
            f"Content in config file {config_file} is not a mapping",
            config_file=str(config_file),
        )

    resolver = VariableResolver.from_dotenv_file(dotenv_path, environ=environ)
    config = parse_config(yaml_config, resolver=resolver, config_file=str(config_file))
    logger.debug(f"Loaded configuration from {config_file}")
    return config
