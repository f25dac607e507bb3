"""
Writing the audit trail for API calls.
"""

from fastapi import Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.core.audit import AuditAction, AuditSection, AuditTrailData, to_json
from groupadmin.core.auth import CallerData
from groupadmin.core.models import ResponseModel
from groupadmin.service.audit import create_audit_trail


async def record(
    request: Request,
    caller: CallerData,
    response: ResponseModel,
    action: AuditAction,
    section: AuditSection,
    key_type: str,
    system_remarks: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    key_id: str | None = None,
    request_parameters: BaseModel | dict | None = None,
) -> ResponseModel:
    """
    Write one audit trail record for a call, whether or not it succeeded. The
    row snapshot in the response metadata is only recorded for successful
    calls, and mutations have their metadata cleared before it is returned.
    """
    audit = response.audit if response.success else None

    await create_audit_trail(
        AuditTrailData(
            user_type=caller.user_type,
            organization_id=caller.organization_id,
            key_type=key_type,
            key_id=key_id,
            url=request.url.path,
            request_parameters_json=to_json(request_parameters, ignore_nulls=True),
            action=action,
            section=section,
            old_values_json=to_json(audit.old_values, ignore_nulls=True)
            if audit
            else None,
            new_values_json=to_json(audit.new_values) if audit else None,
            system_remarks=system_remarks,
            created_by=caller.user_id,
            ip_address=request.client.host if request.client else None,
        ),
        conn=conn,
        log=log,
    )

    if action != AuditAction.GET:
        response.meta_data = None

    return response
