"""
Audit trail sink.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.core.audit import AuditSection, AuditTrailData
from groupadmin.database.audit import AuditTrail
from groupadmin.database.audited import current_time


async def create_audit_trail(
    record: AuditTrailData, conn: AsyncSession, log: FilteringBoundLogger
) -> AuditTrail:
    """
    Persist one audit trail record.
    """
    log = log.bind(
        key_type=record.key_type,
        key_id=record.key_id,
        action=record.action.value,
        section=record.section.value,
    )

    entry = AuditTrail(
        **record.model_dump(mode="json", exclude={"created_on"}),
        created_on=record.created_on or current_time(),
    )

    conn.add(entry)
    await conn.flush()

    await log.adebug("audit_trail.created", audit_trail_id=entry.audit_trail_id)

    return entry


async def get_audit_trail_list(
    organization_id: str,
    conn: AsyncSession,
    section: AuditSection | None = None,
) -> list[AuditTrail]:
    """
    All audit trail records of an organization, oldest first.
    """
    query = select(AuditTrail).where(AuditTrail.organization_id == organization_id)

    if section is not None:
        query = query.where(AuditTrail.section == section.value)

    result = await conn.execute(
        query.order_by(AuditTrail.created_on, AuditTrail.audit_trail_id)
    )

    return list(result.scalars().all())
