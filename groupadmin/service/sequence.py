"""
Monotonic per-entity identifiers.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from groupadmin.database.sequence import IdSequence


async def next_sequence(entity: type[SQLModel], conn: AsyncSession) -> str:
    """
    Reserve the next identifier for `entity`. The sequence row is locked for
    the rest of the transaction on backends that support it.
    """
    entity_name = entity.__tablename__

    sequence = (
        await conn.execute(
            select(IdSequence)
            .where(IdSequence.entity_name == entity_name)
            .with_for_update()
        )
    ).scalar_one_or_none()

    if sequence is None:
        sequence = IdSequence(entity_name=entity_name, last_value=0)
        conn.add(sequence)

    sequence.last_value += 1
    await conn.flush()

    return str(sequence.last_value)
