"""
Referential guard standing in for foreign-key constraints.
"""

from .referential import Allowed, Blocked, DeleteCheck, ReferentialGuard

__all__ = ["Allowed", "Blocked", "DeleteCheck", "ReferentialGuard"]
