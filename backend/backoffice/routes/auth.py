from flask import Blueprint, request, abort, current_app
from flask_jwt_extended import create_access_token
from sqlalchemy import select
from backoffice import get_db
from backoffice.decorators.auth import authenticate, require_permission, current_identity
from backoffice.errors import AccountInactive, RoleNotFound
from backoffice.models.authz import User
from backoffice.services.identity import ROLE_CLAIM, parse_role_ref, resolve_role
from backoffice.services.policy import effective_permissions
from backoffice.services.roles import RoleStore
from backoffice.utils.validation import require_fields

auth_bp = Blueprint('auth', __name__)


def issue_token(user: User) -> str:
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    return create_access_token(identity=str(user.id), additional_claims={ROLE_CLAIM: user.role_id})


def user_json(u: User):
    return {
        'id': u.id,
        'name': u.name,
        'lastname': u.lastname,
        'contact_number': u.contact_number,
        'email': u.email,
        'role': {'id': u.role.id, 'name': u.role.name} if u.role else None,
        'status': u.status,
    }


@auth_bp.post('/login')
def login():
    data = request.json or {}
    email = data.get('email'); password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    session = get_db()
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user or not user.verify_password(password):
        abort(401, description='Invalid credentials')
    if not user.is_active:
        raise AccountInactive()
    if user.role_id is None:
        raise RoleNotFound()
    current_app.logger.info('User %s logged in', user.id)
    return {'token': issue_token(user)}


@auth_bp.get('/me')
@authenticate
def me():
    identity = current_identity()
    session = get_db()
    user = session.execute(select(User).where(User.id == identity.user_id)).scalar_one_or_none()
    if not user:
        abort(404, description='User not found')
    body = user_json(user)
    body['role'] = {'id': identity.role.id, 'name': identity.role.name}
    body['permissions'] = effective_permissions(identity.role, identity.account_status)
    return body


@auth_bp.post('/register')
@require_permission('create_users')
def register():
    data = request.json or {}
    require_fields(data, 'name', 'lastname', 'contact_number', 'email', 'password', 'role')
    session = get_db()
    if session.execute(select(User).where(User.email == data['email'])).scalar_one_or_none():
        abort(400, description='Email already in use')
    ref = parse_role_ref(data['role'])
    try:
        role = resolve_role(RoleStore(session), ref) if ref else None
    except RoleNotFound:
        role = None
    if role is None:
        abort(400, description='Invalid role')
    user = User(
        name=data['name'],
        lastname=data['lastname'],
        contact_number=data['contact_number'],
        email=data['email'],
        password_hash='',
        role_id=role.id,
        status='active',
    )
    user.set_password(data['password'])
    session.add(user)
    session.commit()
    current_app.logger.info('User %s registered with role %s', user.id, role.name)
    return {'message': 'User registered successfully', 'token': issue_token(user), 'user': user_json(user)}, 201


@auth_bp.post('/reset-password')
@authenticate
def change_own_password():
    data = request.json or {}
    new_password = data.get('new_password')
    if not new_password:
        abort(400, description='new_password required')
    session = get_db()
    user = session.execute(select(User).where(User.id == current_identity().user_id)).scalar_one_or_none()
    if not user:
        abort(404, description='User not found')
    user.set_password(new_password)
    session.commit()
    return {'message': 'Password changed successfully'}
