from flask import Blueprint, request, abort, current_app
from backoffice import get_db
from backoffice.config.pagination import request_pagination, build_list_payload
from backoffice.constants.permissions import ALL_PERMISSION_CODES, DEFAULT_ROLE_PERMISSIONS, is_builtin_role
from backoffice.decorators.auth import require_permission
from backoffice.errors import NotFound
from backoffice.services.roles import RoleStore, describe_role, normalize_role_name
from backoffice.utils.validation import validate_permission_list

roles_bp = Blueprint('roles', __name__)


@roles_bp.get('')
@require_permission('view_roles')
def list_roles():
    limit, offset = request_pagination()
    rows, total = RoleStore(get_db()).list_roles(limit, offset)
    return build_list_payload([describe_role(r) for r in rows], total, limit, offset)


@roles_bp.get('/permissions')
@require_permission('view_roles')
def list_permissions():
    return {
        'permissions': list(ALL_PERMISSION_CODES),
        'defaults': {name: list(codes) for name, codes in DEFAULT_ROLE_PERMISSIONS.items()},
    }


@roles_bp.get('/<int:role_id>')
@require_permission('view_roles_id')
def get_role(role_id: int):
    role = RoleStore(get_db()).find_by_id(role_id)
    if role is None:
        raise NotFound()
    return describe_role(role)


@roles_bp.post('')
@require_permission('create_roles')
def create_role():
    data = request.json or {}
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        abort(400, description='name required')
    permissions = validate_permission_list(data.get('permissions', []))
    # a built-in name can only ever be (re)created as the built-in role itself
    role = RoleStore(get_db()).create(name, is_default=is_builtin_role(normalize_role_name(name)), permissions=permissions)
    current_app.logger.info('Role %s created (%d permissions)', role.name, len(role.permissions))
    return describe_role(role), 201


@roles_bp.put('/<int:role_id>')
@require_permission('update_roles')
def update_role(role_id: int):
    data = request.json or {}
    name = data.get('name')
    if name is not None and not isinstance(name, str):
        abort(400, description='name must be string')
    permissions = None
    if 'permissions' in data:
        permissions = validate_permission_list(data['permissions'])
    role = RoleStore(get_db()).update(role_id, permissions=permissions, name=name)
    current_app.logger.info('Role %s updated', role.name)
    return describe_role(role)


@roles_bp.delete('/<int:role_id>')
@require_permission('delete_roles')
def delete_role(role_id: int):
    RoleStore(get_db()).delete(role_id)
    current_app.logger.info('Role %s deleted', role_id)
    return {'status': 'deleted'}
