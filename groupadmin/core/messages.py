"""
Message catalog for user-facing response messages. Codes are stable so that
clients can localize on their side; `get_message` returns the default English
text with any positional arguments substituted.
"""

NO_RECORD_FOUND = 1001
INVALID_REQUEST = 1002
ORGANIZATION_REQUIRED = 1004
ORGANIZATION_NOT_FOUND = 1005
GROUP_REQUIRED = 1006

GROUP_NAME_REQUIRED = 2401
GROUP_CREATED = 2402
GROUP_UPDATED = 2403
GROUP_DELETED = 2404
GROUP_NOT_FOUND = 2405
GROUP_ID_REQUIRED = 2406
GROUP_NAME_RESERVED = 2407
GROUP_RESERVED_NOT_DELETABLE = 2408
GROUP_NAME_EXISTS = 2411

GROUP_PERMISSION_SAVED = 2601
GROUP_PERMISSION_REMOVED = 2602
GROUP_PERMISSION_NOT_FOUND = 2603
PERMISSION_REQUIRED = 2604
PERMISSION_NOT_FOUND = 2605

NO_USERS_FOUND = 2801
USER_REQUIRED = 2802
GROUP_USER_SAVED = 2803
GROUP_USER_REMOVED = 2804
USER_IN_OTHER_GROUP = 2805
GROUP_USER_NOT_FOUND = 2806
USER_NOT_FOUND = 2807
NO_GROUPS_FOUND = 2808

MESSAGES: dict[int, str] = {
    NO_RECORD_FOUND: "No record found.",
    INVALID_REQUEST: "Invalid request.",
    ORGANIZATION_REQUIRED: "Organization is required.",
    ORGANIZATION_NOT_FOUND: "Organization not found.",
    GROUP_REQUIRED: "Group is required.",
    GROUP_NAME_REQUIRED: "Group name is required.",
    GROUP_CREATED: "Group {0} created successfully.",
    GROUP_UPDATED: "Group {0} updated successfully.",
    GROUP_DELETED: "Group {0} deleted successfully.",
    GROUP_NOT_FOUND: "Group not found.",
    GROUP_ID_REQUIRED: "Group id is required.",
    GROUP_NAME_RESERVED: "Group name {0} is reserved.",
    GROUP_RESERVED_NOT_DELETABLE: "Group {0} cannot be deleted.",
    GROUP_NAME_EXISTS: "A group with this name already exists in the organization.",
    GROUP_PERMISSION_SAVED: "Permission assigned to group successfully.",
    GROUP_PERMISSION_REMOVED: "Permission removed from group successfully.",
    GROUP_PERMISSION_NOT_FOUND: "Permission is not assigned to this group.",
    PERMISSION_REQUIRED: "Permission is required.",
    PERMISSION_NOT_FOUND: "Permission not found.",
    NO_USERS_FOUND: "No users found.",
    USER_REQUIRED: "User is required.",
    GROUP_USER_SAVED: "User added to group successfully.",
    GROUP_USER_REMOVED: "User removed from group successfully.",
    USER_IN_OTHER_GROUP: "User already belongs to another group.",
    GROUP_USER_NOT_FOUND: "User is not a member of this group.",
    USER_NOT_FOUND: "User not found.",
    NO_GROUPS_FOUND: "No groups found for this user.",
}


def get_message(code: int, *args) -> str:
    """
    Look up the text for `code`, formatting in `args`. Unknown codes fall back
    to the code itself.
    """
    text = MESSAGES.get(code)

    if text is None:
        return str(code)

    return text.format(*args)
