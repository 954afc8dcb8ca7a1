"""Configuration for the query assistant: environment settings, thresholds, context bounds."""

from sqlpilot.config.context_bounds import ContextBounds
from sqlpilot.config.settings import Settings, get_default_db_path

__all__ = ["ContextBounds", "Settings", "get_default_db_path"]
