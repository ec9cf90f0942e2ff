"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from bitenet_admin.core.config import get_settings, Settings, EnvironmentMode
from bitenet_admin.core.exceptions import (
    AdminAPIError,
    ConflictError,
    NotFoundError,
    ParameterError,
    UnauthorizedError,
    UnexpectedError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "AdminAPIError",
    "ConflictError",
    "NotFoundError",
    "ParameterError",
    "UnauthorizedError",
    "UnexpectedError",
]
