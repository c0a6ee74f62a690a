"""
Permission codes and the role -> permission table.

WHY: Centralized permission definitions keep the route decorators and the
order services in agreement about who may do what. Roles are fixed for the
cafeteria (administrator, cashier, supplier, end-user), so the mapping is
static rather than stored in the database.
"""

from app.models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_SUPPLIER, ROLE_USER


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description)
PERMISSION_DEFINITIONS = [
    (
        "CREATE_TRANSACTION",
        "Create Transaction",
        "Place an order for menu items",
    ),
    (
        "COMPLETE_SALE",
        "Complete Sale",
        "Orders are completed immediately and consume stock at creation",
    ),
    (
        "APPROVE_TRANSACTION",
        "Approve Transaction",
        "Approve or reject PENDING orders",
    ),
    (
        "VIEW_TRANSACTIONS",
        "View Transactions",
        "List transactions visible to the role",
    ),
    (
        "VIEW_ALL_TRANSACTIONS",
        "View All Transactions",
        "See every transaction regardless of requester or status",
    ),
]


# =============================================================================
# DEFAULT ROLE MAPPINGS
# =============================================================================

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: [
        # Administrator: oversight only, never rings up or approves orders
        "VIEW_TRANSACTIONS",
        "VIEW_ALL_TRANSACTIONS",
    ],

    ROLE_CASHIER: [
        "CREATE_TRANSACTION",
        "COMPLETE_SALE",        # in-person sales are final
        "APPROVE_TRANSACTION",
        "VIEW_TRANSACTIONS",
    ],

    ROLE_SUPPLIER: [],

    ROLE_USER: [
        "CREATE_TRANSACTION",   # orders wait for a cashier
    ],
}


# =============================================================================
# PERMISSION HELPERS
# =============================================================================

def get_role_permissions(role: str) -> set[str]:
    return set(DEFAULT_ROLE_PERMISSIONS.get(role, ()))


def has_permission(role: str, permission_code: str) -> bool:
    return permission_code in get_role_permissions(role)
