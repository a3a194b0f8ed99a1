"""Permission catalog and default permission sets for the built-in roles.
Extend cautiously; never rename codes silently since route guards and stored role lists reference them.
"""
from __future__ import annotations
from typing import Dict, FrozenSet, List, Tuple

# Resource -> recognised actions. Codes are built as f"{action}_{resource}".
RESOURCE_ACTIONS: Dict[str, List[str]] = {
    'roles': ['view', 'view_id', 'create', 'update', 'delete'],
    'users': ['view', 'view_id', 'create', 'update', 'delete'],
    'categories': ['view', 'view_id', 'create', 'update', 'delete'],
    # products historically use "edit" instead of "update"
    'products': ['view', 'view_id', 'create', 'edit', 'delete', 'export'],
    'providers': ['view', 'view_id', 'create', 'update', 'delete'],
    'purchases': ['view', 'view_id', 'create', 'update', 'delete', 'export'],
    'branches': ['view', 'create', 'update', 'delete'],
    'customers': ['view', 'view_id', 'create', 'update', 'delete'],
    'sales': ['view', 'view_id', 'create', 'update', 'delete', 'export', 'generate_invoice'],
}


def permission_code(resource: str, action: str) -> str:
    # "view_id" is a suffix form: view_products_id
    if action == 'view_id':
        return f"view_{resource}_id"
    return f"{action}_{resource}"


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for resource, actions in RESOURCE_ACTIONS.items():
        for act in actions:
            codes.append(permission_code(resource, act))
    return codes


ALL_PERMISSION_CODES: Tuple[str, ...] = tuple(build_all_permission_codes())

SUPERUSER_ROLE = 'admin'
BUILTIN_ROLE_NAMES: Tuple[str, ...] = ('admin', 'assistant', 'employee')

DEFAULT_ROLE_PERMISSIONS: Dict[str, Tuple[str, ...]] = {
    # admin is derived from the catalog so the two never drift apart
    'admin': ALL_PERMISSION_CODES,
    'assistant': (
        'view_roles', 'create_users', 'view_users', 'view_users_id', 'update_users',
        'view_categories', 'create_categories', 'update_categories',
        'view_products', 'create_products', 'edit_products', 'delete_products',
        'view_providers', 'view_providers_id', 'create_providers', 'update_providers',
        'view_purchases', 'view_purchases_id', 'create_purchases', 'update_purchases',
        'view_customers', 'view_customers_id', 'create_customers', 'update_customers',
        'view_sales', 'view_sales_id', 'create_sales', 'update_sales',
    ),
    'employee': (
        'view_categories', 'view_products', 'view_customers', 'view_customers_id',
        'view_sales', 'create_sales', 'update_sales',
    ),
}


def all_permissions() -> FrozenSet[str]:
    return frozenset(ALL_PERMISSION_CODES)


def default_permissions_for(role_name: str) -> Tuple[str, ...]:
    """Hardcoded permission list for a built-in role name; empty for anything else."""
    return DEFAULT_ROLE_PERMISSIONS.get(role_name, ())


def is_builtin_role(role_name: str) -> bool:
    return role_name in BUILTIN_ROLE_NAMES


def is_known_permission(code: str) -> bool:
    return code in all_permissions()


__all__ = [
    'RESOURCE_ACTIONS', 'ALL_PERMISSION_CODES', 'SUPERUSER_ROLE', 'BUILTIN_ROLE_NAMES', 'DEFAULT_ROLE_PERMISSIONS',
    'permission_code', 'build_all_permission_codes', 'all_permissions', 'default_permissions_for',
    'is_builtin_role', 'is_known_permission',
]
