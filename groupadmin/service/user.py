"""
Service layer for users
"""

from sqlalchemy.ext.asyncio import AsyncSession

from groupadmin.database.user import User


class UserNotFound(Exception):
    pass


async def read_by_id(
    user_id: str, conn: AsyncSession, organization_id: str | None = None
) -> User:
    """
    Read a user, optionally requiring that they belong to `organization_id`.

    Raises
    ------
    UserNotFound
        If the user does not exist (in that organization).
    """
    res = await conn.get(User, user_id)

    if res is None or (
        organization_id is not None and res.organization_id != organization_id
    ):
        raise UserNotFound(f"User with ID {user_id} not found in the database")

    return res
