"""Exception hierarchy for workspace analysis.

Structural failures (a directory, manifest or project that cannot be read at
all) are raised; per-file and per-symbol failures are logged and skipped by
the component that hits them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class MonoindexError(Exception):
    """Base class for every error raised by monoindex."""


class AnalysisError(MonoindexError):
    """A workspace analysis stage could not complete.

    Carries the offending ``path`` and the underlying ``cause`` so callers
    can report both without parsing the message.
    """

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.path = str(path) if path is not None else None
        self.cause = cause
        super().__init__(f"Analysis failed: {message}")


class ProjectBuildError(AnalysisError):
    """The project-wide syntax/semantic model could not be built."""


class ConfigError(MonoindexError):
    """Configuration file is unreadable or holds invalid values."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        self.path = str(path) if path is not None else None
        prefix = f"{self.path}: " if self.path else ""
        super().__init__(f"Invalid configuration: {prefix}{message}")
