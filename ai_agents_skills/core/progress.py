"""Progress events emitted by the installer and removal code.

The core never prints. Callers that want feedback pass a callback; the CLI
renders events with rich, tests usually collect them in a list.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable

from pydantic import BaseModel


class ProgressStage(str, Enum):
    SETUP = "setup"
    INSTALL = "install"
    SKIP = "skip"
    ROLLBACK = "rollback"
    UNINSTALL = "uninstall"


class ProgressEvent(BaseModel):
    """One step of a long-running operation."""
    stage: ProgressStage
    message: str
    skill: str | None = None
    current: int = 0
    total: int = 0
    dry_run: bool = False


ProgressCallback = Callable[[ProgressEvent], None]


def null_progress(event: ProgressEvent) -> None:
    """Default callback: discard the event."""
