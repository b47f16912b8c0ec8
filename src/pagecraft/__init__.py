"""PageCraft package."""

from pagecraft.async_runner import run_async
from pagecraft.exceptions import (
    AssemblyError,
    AsyncExecutionError,
    CorruptDocumentError,
    DanglingPageRefError,
    DependencyError,
    InvalidLayoutSpecError,
    PackageError,
    PageIndexError,
    PageRefNotFoundError,
    RasterError,
    ReferenceCountError,
    SettingsError,
    SourceError,
    UnsupportedFileTypeError,
)
from pagecraft.logging import configure_logging, get_logger
from pagecraft.settings import Settings, get_settings

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("pagecraft")

__all__ = [
    "AssemblyError",
    "AsyncExecutionError",
    "CorruptDocumentError",
    "DanglingPageRefError",
    "DependencyError",
    "InvalidLayoutSpecError",
    "PackageError",
    "PageIndexError",
    "PageRefNotFoundError",
    "RasterError",
    "ReferenceCountError",
    "Settings",
    "SettingsError",
    "SourceError",
    "UnsupportedFileTypeError",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_settings",
    "logger",
    "run_async",
]
