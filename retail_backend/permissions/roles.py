# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
# Roles are Django auth Group names. A user's role is the first
# staff role found among their groups; superusers are always admin.
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_STOREKEEPER = "storekeeper"
ROLE_CASHIER = "cashier"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_STOREKEEPER,
    ROLE_CASHIER,
}

# Highest privilege first; decides which group wins when a user has several.
ROLE_PRECEDENCE = (
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_STOREKEEPER,
    ROLE_CASHIER,
)


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views protect capabilities, not raw roles.
CAP_STOCKOPS_VIEW = "stockops.view"
CAP_STOCKOPS_SUBMIT = "stockops.submit"
CAP_STOCKOPS_REVERSE = "stockops.reverse"      # undo a committed operation

CAP_TRANSFERS_REQUEST = "transfers.request"
CAP_TRANSFERS_APPROVE = "transfers.approve"    # approve / decline

CAP_REPORTS_VIEW = "reports.view"

CAP_INVENTORY_EDIT = "inventory.edit"          # item master data, never stock
CAP_STORES_MANAGE = "stores.manage"

ALL_CAPABILITIES = {
    CAP_STOCKOPS_VIEW,
    CAP_STOCKOPS_SUBMIT,
    CAP_STOCKOPS_REVERSE,
    CAP_TRANSFERS_REQUEST,
    CAP_TRANSFERS_APPROVE,
    CAP_REPORTS_VIEW,
    CAP_INVENTORY_EDIT,
    CAP_STORES_MANAGE,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        CAP_STOCKOPS_VIEW,
        CAP_STOCKOPS_SUBMIT,
        CAP_STOCKOPS_REVERSE,
        CAP_TRANSFERS_REQUEST,
        CAP_TRANSFERS_APPROVE,
        CAP_REPORTS_VIEW,
        CAP_INVENTORY_EDIT,
    },
    ROLE_STOREKEEPER: {
        CAP_STOCKOPS_VIEW,
        CAP_STOCKOPS_SUBMIT,
        CAP_TRANSFERS_REQUEST,
    },
    ROLE_CASHIER: {
        CAP_STOCKOPS_VIEW,
        CAP_STOCKOPS_SUBMIT,
        # deliberately NOT reverse or approve
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    if not user or not getattr(user, "is_authenticated", False):
        return None

    if getattr(user, "is_superuser", False):
        return ROLE_ADMIN

    # Custom user models may carry the role directly.
    direct = getattr(user, "role", None)
    if direct in STAFF_ROLES:
        return direct

    group_names = set(user.groups.values_list("name", flat=True))
    for role in ROLE_PRECEDENCE:
        if role in group_names:
            return role

    return None


def effective_capabilities_for(user) -> set[str]:
    role = get_user_role(user)
    return set(ROLE_CAPABILITIES.get(role, set()))


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_STOCKOPS_REVERSE
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        return required in effective_capabilities_for(user)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a set.

    Usage:
        view.required_any_capabilities = {CAP_STOCKOPS_VIEW, CAP_REPORTS_VIEW}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(user)
        return any(cap in caps for cap in set(required))
