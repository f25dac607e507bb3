"""
Pydantic models shared by every request/response of the API.
"""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")


class MetaDataKey:
    TOTAL_RECORDS = "total_records"
    PERMISSION_ACTIONS = "permission_actions"
    AUDIT = "audit"


class SortOrder:
    ASCENDING = "ASC"
    DESCENDING = "DESC"


class AuditDetail(BaseModel):
    """
    Snapshot of a row before and after a mutation. `old_values` is None for
    inserts, `new_values` is None for deletions.
    """

    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None


class ResponseModel(BaseModel, Generic[T]):
    """
    Envelope returned by every manager operation. Failures are reported here
    (`success=False`) rather than raised.
    """

    success: bool
    data: T | None = None
    message: str | None = None
    error_message: list[str] | None = None
    meta_data: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls, message: str | None = None, errors: list[str] | None = None
    ) -> "ResponseModel[T]":
        return cls(success=False, message=message, error_message=errors or None)

    @property
    def audit(self) -> AuditDetail | None:
        if not self.meta_data:
            return None
        return self.meta_data.get(MetaDataKey.AUDIT)

    @property
    def total_records(self) -> int | None:
        if not self.meta_data:
            return None
        return self.meta_data.get(MetaDataKey.TOTAL_RECORDS)


class KeyValueModel(BaseModel, Generic[K, V]):
    key: K
    value: V


class PageFilter(BaseModel):
    """
    Paging and sorting options common to all list filters. Pagination only
    applies when both `page_no` and `page_size` are given.
    """

    page_no: int | None = Field(default=None, ge=1)
    page_size: int | None = Field(default=None, ge=1)
    sort_by: str | None = None
    sort_order: Literal["ASC", "DESC"] | None = None

    @field_validator("sort_order", mode="before")
    @classmethod
    def normalize_sort_order(cls, value):
        if isinstance(value, str):
            return value.strip().upper() or None
        return value

    @property
    def descending(self) -> bool:
        return self.sort_order == SortOrder.DESCENDING
