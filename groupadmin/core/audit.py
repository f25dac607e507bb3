"""
Audit trail records and row snapshots.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel
from sqlmodel import SQLModel


class AuditAction(str, Enum):
    ADD = "Add"
    UPDATE = "Update"
    DELETE = "Delete"
    GET = "Get"


class AuditSection(str, Enum):
    GROUP = "Group"
    GROUP_PERMISSION = "GroupPermission"
    GROUP_USER_MAPPING = "GroupUserMapping"


class SystemRemarks:
    VIEW_GROUP_LIST = "Viewed group list"
    VIEW_GROUP_DETAIL = "Viewed group detail"
    ADD_GROUP = "Added group"
    UPDATE_GROUP = "Updated group"
    DELETE_GROUP = "Deleted group"
    ADD_GROUP_PERMISSION = "Added permission to group"
    REMOVE_GROUP_PERMISSION = "Removed permission from group"
    ADD_GROUP_USER = "Added user to group"
    REMOVE_GROUP_USER = "Removed user from group"


class AuditTrailData(BaseModel):
    user_type: str
    organization_id: str
    key_type: str
    key_id: str | None = None
    url: str
    request_parameters_json: str | None = None
    action: AuditAction
    section: AuditSection
    old_values_json: str | None = None
    new_values_json: str | None = None
    system_remarks: str
    created_by: str
    created_on: datetime | None = None
    ip_address: str | None = None


def snapshot(row: SQLModel | None) -> dict[str, Any] | None:
    """
    JSON-compatible copy of a table row's columns, taken at call time.
    """
    if row is None:
        return None
    return row.model_dump(mode="json")


def to_json(values: Any, ignore_nulls: bool = False) -> str | None:
    if values is None:
        return None

    if isinstance(values, BaseModel):
        values = values.model_dump(mode="json", exclude_none=ignore_nulls)
    elif ignore_nulls and isinstance(values, dict):
        values = {k: v for k, v in values.items() if v is not None}

    return json.dumps(values, default=str)
