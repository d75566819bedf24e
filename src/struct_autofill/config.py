import logging
import os
from pathlib import Path

from pydantic import BaseModel
from rich.logging import RichHandler

MAX_SCAN_LINES = 50
MAX_CONTEXT_LINES = 5
MAX_LOOKBACK_LINES = 20
MAX_FALLBACK_LINES = 30

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    verbose: bool = False
    max_schema_files: int = 500
    search_module_cache: bool = True
    module_cache_dir: Path | None = None


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def default_module_cache_dir() -> Path:
    """Resolve the Go module cache the way the go command does."""
    explicit = os.getenv("GOMODCACHE")
    if explicit:
        return Path(explicit)
    gopath = os.getenv("GOPATH")
    if gopath:
        # GOPATH may be a list; the first entry owns pkg/mod
        return Path(gopath.split(os.pathsep)[0]) / "pkg" / "mod"
    return Path.home() / "go" / "pkg" / "mod"


def get_settings(verbose: bool | None = None) -> Settings:
    return Settings(
        verbose=_env_flag("STRUCT_AUTOFILL_VERBOSE", False) if verbose is None else verbose,
        max_schema_files=int(os.getenv("STRUCT_AUTOFILL_MAX_SCHEMA_FILES", "500")),
        search_module_cache=_env_flag("STRUCT_AUTOFILL_MODULE_CACHE", True),
        module_cache_dir=default_module_cache_dir(),
    )


def configure_logging(verbose: bool) -> None:
    """Route log records through rich; DEBUG when verbose, INFO otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
