from __future__ import annotations

import os
import tomllib
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from auto_id3tag.errors import ConfigurationError
from auto_id3tag.naming import (
    DEFAULT_INPUT_TITLE_SCHEME,
    DEFAULT_OUTPUT_TITLE_SCHEME,
    NamingScheme,
    directory_scheme_for_levels,
)


class TagStoreBackend(StrEnum):
    """Supported tag store backends."""

    ID3V2 = "id3v2"
    MUTAGEN = "mutagen"


class NamingConfig(BaseModel):
    """Directory and file name scheme configuration."""

    # Used only when input_directory_scheme is not set:
    # 0: title.mp3, 1: artist/, 2: artist/album/, 3: genre/artist/album/
    directory_levels: int = Field(default=2, ge=0, le=3)
    input_directory_scheme: list[str] | None = Field(default=None)
    input_file_name_title_scheme: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INPUT_TITLE_SCHEME)
    )
    output_file_name_title_scheme: list[str] = Field(
        default_factory=lambda: list(DEFAULT_OUTPUT_TITLE_SCHEME)
    )

    @field_validator("input_file_name_title_scheme")
    @classmethod
    def _default_input_scheme(cls, value: list[str]) -> list[str]:
        return value or list(DEFAULT_INPUT_TITLE_SCHEME)

    @field_validator("output_file_name_title_scheme")
    @classmethod
    def _default_output_scheme(cls, value: list[str]) -> list[str]:
        return value or list(DEFAULT_OUTPUT_TITLE_SCHEME)

    def directory_scheme(self) -> list[str]:
        if self.input_directory_scheme:
            return list(self.input_directory_scheme)
        return directory_scheme_for_levels(self.directory_levels)

    def to_scheme(self) -> NamingScheme:
        return NamingScheme(
            input_directory_scheme=self.directory_scheme(),
            input_file_name_title_scheme=list(self.input_file_name_title_scheme),
            output_file_name_title_scheme=list(self.output_file_name_title_scheme),
        )


class TagStoreConfig(BaseModel):
    """Tag store configuration."""

    backend: TagStoreBackend = Field(default=TagStoreBackend.ID3V2)
    id3v2_path: Path | None = Field(default=None)  # Looked up in PATH when unset
    timeout_s: float | None = Field(default=None, gt=0)  # None: wait forever
    supported_extensions: list[str] = Field(default_factory=lambda: ["mp3"])

    @field_validator("supported_extensions")
    @classmethod
    def _normalize_extensions(cls, value: list[str]) -> list[str]:
        return [ext.lower().lstrip(".") for ext in value]


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING")  # DEBUG, INFO, WARNING, ERROR
    format: str = Field(default="%(message)s")
    hash_paths: bool = Field(default=False)


class Config(BaseModel):
    """
    Main configuration for auto-id3tag.

    Loads from TOML file with optional environment variable overrides.
    """

    naming: NamingConfig = Field(default_factory=NamingConfig)
    tag_store: TagStoreConfig = Field(default_factory=TagStoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Tags guessed from file and directory names overwrite existing tags
    filesystem_priority: bool = Field(default=False)
    dry_run: bool = Field(default=False)
    # Record per-file failures and go on instead of aborting the directory
    continue_on_error: bool = Field(default=False)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """
        Load configuration from TOML file with environment variable overrides.

        Environment variables take precedence and follow the pattern:
        AUTO_ID3TAG_<SECTION>_<KEY> (e.g., AUTO_ID3TAG_TAG_STORE_BACKEND).
        List values are comma separated.

        Raises:
            ConfigurationError: The TOML file or an override is invalid
        """
        config_dict: dict[str, object] = {}

        if config_path and config_path.exists():
            try:
                config_dict = tomllib.loads(config_path.read_text())
            except tomllib.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e

        config_dict = cls._merge_env_overrides(config_dict)
        try:
            return cls.model_validate(config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def _merge_env_overrides(cls, config_dict: dict[str, object]) -> dict[str, object]:
        """
        Merge environment variable overrides into config dictionary.

        Returns a new dictionary with env vars applied, ready for Pydantic validation.
        """
        env_prefix = "AUTO_ID3TAG_"

        for key in ("filesystem_priority", "dry_run", "continue_on_error"):
            if flag := os.getenv(f"{env_prefix}{key.upper()}"):
                config_dict[key] = _parse_bool(flag)

        naming = _section(config_dict, "naming")
        if levels := os.getenv(f"{env_prefix}NAMING_DIRECTORY_LEVELS"):
            naming["directory_levels"] = levels
        for key in (
            "input_directory_scheme",
            "input_file_name_title_scheme",
            "output_file_name_title_scheme",
        ):
            if scheme := os.getenv(f"{env_prefix}NAMING_{key.upper()}"):
                naming[key] = _parse_list(scheme)

        tag_store = _section(config_dict, "tag_store")
        if backend := os.getenv(f"{env_prefix}TAG_STORE_BACKEND"):
            tag_store["backend"] = backend
        if id3v2_path := os.getenv(f"{env_prefix}TAG_STORE_ID3V2_PATH"):
            tag_store["id3v2_path"] = id3v2_path
        if timeout := os.getenv(f"{env_prefix}TAG_STORE_TIMEOUT_S"):
            tag_store["timeout_s"] = timeout
        if extensions := os.getenv(f"{env_prefix}TAG_STORE_SUPPORTED_EXTENSIONS"):
            tag_store["supported_extensions"] = _parse_list(extensions)

        logging_config = _section(config_dict, "logging")
        if log_level := os.getenv(f"{env_prefix}LOGGING_LEVEL"):
            logging_config["level"] = log_level
        if log_format := os.getenv(f"{env_prefix}LOGGING_FORMAT"):
            logging_config["format"] = log_format
        if log_hash_paths := os.getenv(f"{env_prefix}LOGGING_HASH_PATHS"):
            logging_config["hash_paths"] = _parse_bool(log_hash_paths)

        return config_dict


def _section(config_dict: dict[str, object], name: str) -> dict[str, object]:
    section = config_dict.setdefault(name, {})
    if not isinstance(section, dict):
        section = {}
        config_dict[name] = section
    return section


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _parse_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


## Tests


def test_config_defaults():
    config = Config()
    assert config.filesystem_priority is False
    assert config.dry_run is False
    assert config.naming.directory_levels == 2
    assert config.naming.directory_scheme() == ["artist", "album"]
    assert config.naming.input_file_name_title_scheme == ["title"]
    assert config.naming.output_file_name_title_scheme == ["suite", "title", "subtitle"]
    assert config.tag_store.backend == TagStoreBackend.ID3V2
    assert config.tag_store.supported_extensions == ["mp3"]


def test_config_explicit_directory_scheme_wins():
    config = Config.model_validate(
        {"naming": {"directory_levels": 3, "input_directory_scheme": ["album"]}}
    )
    assert config.naming.directory_scheme() == ["album"]


def test_config_empty_title_schemes_fall_back():
    config = Config.model_validate(
        {"naming": {"input_file_name_title_scheme": [], "output_file_name_title_scheme": []}}
    )
    assert config.naming.input_file_name_title_scheme == ["title"]
    assert config.naming.output_file_name_title_scheme == ["suite", "title", "subtitle"]


def test_config_env_overrides(
    monkeypatch,  # pyright: ignore[reportMissingParameterType,reportUnknownParameterType]
):
    monkeypatch.setenv("AUTO_ID3TAG_FILESYSTEM_PRIORITY", "yes")  # pyright: ignore[reportUnknownMemberType]
    monkeypatch.setenv("AUTO_ID3TAG_NAMING_DIRECTORY_LEVELS", "3")  # pyright: ignore[reportUnknownMemberType]
    monkeypatch.setenv("AUTO_ID3TAG_TAG_STORE_SUPPORTED_EXTENSIONS", ".MP3, mp2")  # pyright: ignore[reportUnknownMemberType]

    config = Config.load()
    assert config.filesystem_priority is True
    assert config.naming.directory_scheme() == ["genre", "artist", "album"]
    assert config.tag_store.supported_extensions == ["mp3", "mp2"]


def test_config_load_nonexistent_file():
    config = Config.load(Path("/nonexistent/config.toml"))
    assert config.naming.directory_levels == 2
