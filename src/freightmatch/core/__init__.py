"""
Core infrastructure for the load lifecycle engine.

This module provides:
- Config: Configuration management
- Errors: Error hierarchy shared by all components
- Logging: structlog setup
"""

from .config import ConfigManager, get_config
from .errors import (
    ActiveJobError,
    AuthorizationError,
    ConflictError,
    FreightMatchError,
    NotFoundError,
    StateError,
    ValidationError,
)

__all__ = [
    "ConfigManager",
    "get_config",
    "FreightMatchError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "StateError",
    "ConflictError",
    "ActiveJobError",
]
