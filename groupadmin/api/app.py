"""
FastAPI app
"""

from importlib.metadata import version

from fastapi import FastAPI

from .auth import add_exception_handlers
from .dependencies import DATABASE_MANAGER, SETTINGS
from .group_permissions import group_permission_app
from .group_users import group_user_app
from .groups import group_app
from .setup import initial_setup

settings = SETTINGS()


async def lifespan(app: FastAPI):
    app.settings = settings

    await initial_setup(settings=settings, manager=DATABASE_MANAGER)

    yield

    await DATABASE_MANAGER.engine.dispose()


app = FastAPI(
    lifespan=lifespan,
    title="Group Administration API",
    summary=(
        "Manage the groups of an organization, the permissions granted to "
        "them and the users that belong to them."
    ),
    version=version("groupadmin"),
)

app = add_exception_handlers(app)

app.include_router(group_app, prefix="/group")
app.include_router(group_permission_app, prefix="/group-permission")
app.include_router(group_user_app, prefix="/group-user")
