"""
Meta functionality for the database.
"""

from .audit import AuditTrail
from .group import Group
from .organization import Organization
from .permission import GroupPermission, Permission
from .sequence import IdSequence
from .user import GroupUserMapping, User

ALL_TABLES = (
    Organization,
    Group,
    Permission,
    GroupPermission,
    User,
    GroupUserMapping,
    IdSequence,
    AuditTrail,
)
