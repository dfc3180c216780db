"""ai-agents-skills - dependency-aware installer for AI agent skills."""

__version__ = "1.0.0"
