"""ai-agents-skills utilities."""

from ai_agents_skills.utils.fs import (
    entry_exists,
    is_link_to,
    list_entries,
    relative_symlink,
    remove_path,
)
from ai_agents_skills.utils.logging import get_logger, setup_logging

__all__ = [
    "entry_exists",
    "is_link_to",
    "list_entries",
    "relative_symlink",
    "remove_path",
    "setup_logging",
    "get_logger",
]
