"""Configuration for the jarchive command-line tool, using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from helpers import DEFAULT_LOG_FORMAT


class Settings(BaseSettings):
    """Defines tool settings, loaded from JARCHIVE_* environment variables or a .env file.

    Attributes
    ----------
    recursive : bool
        Index exploded archives recursively unless --no-recursive is given.
    nested_suffixes : list of str
        File entries with one of these suffixes are listed as nested archives.
    log_format : str
        Format of log records written to stderr.
    """

    recursive: bool = True
    nested_suffixes: list[str] = [".jar", ".zip"]
    log_format: str = DEFAULT_LOG_FORMAT

    model_config = SettingsConfigDict(
        env_prefix="JARCHIVE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )
