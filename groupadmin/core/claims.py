"""
Permission claims that gate the API endpoints. Each claim is spelled
`<name>.<action>`, the same way permission display names are built.
"""


class Dashboard:
    ADMIN_PANEL = "Dashboard.AdminPanel"


class Group:
    READ = "Group.Read"
    CREATE = "Group.Create"
    UPDATE = "Group.Update"
    DELETE = "Group.Delete"


class GroupPermission:
    READ = "GroupPermission.Read"
    CREATE = "GroupPermission.Create"
    DELETE = "GroupPermission.Delete"


class GroupUser:
    READ = "GroupUser.Read"
    CREATE = "GroupUser.Create"
    DELETE = "GroupUser.Delete"


ALL_CLAIMS = (
    Dashboard.ADMIN_PANEL,
    Group.READ,
    Group.CREATE,
    Group.UPDATE,
    Group.DELETE,
    GroupPermission.READ,
    GroupPermission.CREATE,
    GroupPermission.DELETE,
    GroupUser.READ,
    GroupUser.CREATE,
    GroupUser.DELETE,
)
