"""Core app configuration, database, errors and token handling."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.errors import AppError, ConfigError, ErrorKind

__all__ = ["AppError", "ConfigError", "ErrorKind", "get_settings", "settings", "get_db"]
