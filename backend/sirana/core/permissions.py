"""
Role-based permission matrix for SIRANA.
Defines what each field role is allowed to do in the system.
"""
from ..models.user import UserRole

# Permission constants
PERM_VIEW_RECORDS = "view_records"
PERM_WRITE_RECORDS = "write_records"
PERM_EXPORT_REPORTS = "export_reports"
PERM_VIEW_OWN_DASHBOARD = "view_own_dashboard"
PERM_VIEW_GLOBAL_DASHBOARD = "view_global_dashboard"
PERM_MANAGE_DISASTERS = "manage_disasters"
PERM_MANAGE_USERS = "manage_users"
PERM_VIEW_AUDIT_LOGS = "view_audit_logs"

# Role permission matrix
ROLE_PERMISSIONS: dict = {
    UserRole.FIELD_OFFICER: {
        PERM_VIEW_RECORDS,
        PERM_WRITE_RECORDS,
        PERM_EXPORT_REPORTS,
        PERM_VIEW_OWN_DASHBOARD,
    },
    UserRole.ADMINISTRATOR: {
        PERM_VIEW_RECORDS,
        PERM_WRITE_RECORDS,
        PERM_EXPORT_REPORTS,
        PERM_VIEW_OWN_DASHBOARD,
        PERM_VIEW_GLOBAL_DASHBOARD,
        PERM_MANAGE_DISASTERS,
        PERM_MANAGE_USERS,
        PERM_VIEW_AUDIT_LOGS,
    },
}


def has_permission(role: str, permission: str) -> bool:
    """Check if a role has a specific permission."""
    try:
        role = UserRole(role)
    except ValueError:
        return False
    return permission in ROLE_PERMISSIONS.get(role, set())
