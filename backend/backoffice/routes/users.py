from flask import Blueprint, request, abort, current_app
from sqlalchemy import select, func
from backoffice import get_db
from backoffice.config.pagination import request_pagination, build_list_payload
from backoffice.constants.permissions import SUPERUSER_ROLE
from backoffice.decorators.auth import require_permission, current_identity
from backoffice.errors import RoleNotFound
from backoffice.models.authz import User, USER_STATUSES
from backoffice.routes.auth import user_json
from backoffice.services.identity import parse_role_ref, resolve_role
from backoffice.services.roles import RoleStore
from backoffice.utils.validation import validate_status

users_bp = Blueprint('users', __name__)


def _get_user_or_404(session, user_id: int) -> User:
    user = session.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user:
        abort(404, description='User not found')
    return user


@users_bp.get('')
@require_permission('view_users')
def list_users():
    session = get_db()
    limit, offset = request_pagination()
    total = session.execute(select(func.count(User.id))).scalar_one()
    rows = session.execute(select(User).order_by(User.id.asc()).offset(offset).limit(limit)).scalars().all()
    return build_list_payload([user_json(u) for u in rows], total, limit, offset)


@users_bp.get('/<int:user_id>')
@require_permission('view_users_id')
def get_user(user_id: int):
    return user_json(_get_user_or_404(get_db(), user_id))


@users_bp.put('/<int:user_id>')
@require_permission('update_users')
def update_user(user_id: int):
    identity = current_identity()
    is_admin = identity.role.name == SUPERUSER_ROLE
    if identity.user_id != user_id and not is_admin:
        abort(403, description='Unauthorized to edit this user')
    session = get_db()
    user = _get_user_or_404(session, user_id)
    data = request.json or {}
    for field in ('name', 'lastname', 'contact_number'):
        if field in data:
            if not data[field]:
                abort(400, description=f'{field} cannot be empty')
            setattr(user, field, data[field])
    if 'email' in data:
        email = data['email']
        if not email:
            abort(400, description='email cannot be empty')
        existing = session.execute(select(User).where(User.email == email, User.id != user.id)).scalar_one_or_none()
        if existing:
            abort(400, description='Email already in use')
        user.email = email
    # role changes are reserved to admins; silently ignored for everyone else
    if is_admin and data.get('role') is not None:
        ref = parse_role_ref(data['role'])
        try:
            role = resolve_role(RoleStore(session), ref) if ref else None
        except RoleNotFound:
            role = None
        if role is None:
            abort(400, description='Invalid role')
        user.role = role
    session.commit()
    return {'message': 'User updated successfully', 'user': user_json(user)}


@users_bp.patch('/<int:user_id>/status')
@require_permission('update_users')
def set_user_status(user_id: int):
    data = request.json or {}
    status = validate_status(data.get('status'), USER_STATUSES)
    if current_identity().user_id == user_id:
        abort(400, description='Cannot change your own status')
    session = get_db()
    user = _get_user_or_404(session, user_id)
    user.status = status
    session.commit()
    current_app.logger.info('User %s status set to %s', user.id, status)
    return {'id': user.id, 'status': user.status}


@users_bp.delete('/<int:user_id>')
@require_permission('delete_users')
def delete_user(user_id: int):
    if current_identity().user_id == user_id:
        abort(400, description='Cannot delete yourself')
    session = get_db()
    user = _get_user_or_404(session, user_id)
    session.delete(user)
    session.commit()
    return {'message': 'User deleted successfully'}
