"""
Repositories Module

Soft-delete aware data access used by every router and service.
"""

from bitenet_admin.repositories.base import Page, SoftDeleteRepository, unix_now

__all__ = ["Page", "SoftDeleteRepository", "unix_now"]
