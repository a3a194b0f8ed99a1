from backoffice import get_db
from backoffice.constants.permissions import ALL_PERMISSION_CODES
from backoffice.models.authz import Role
from test_utils_seed import seed_user_with_role


def _admin_headers():
    _, _, headers = seed_user_with_role('owner@test.local', 'admin')
    return headers


def test_role_crud_flow(client):
    headers = _admin_headers()

    resp = client.post('/api/roles', json={'name': ' Cashier ', 'permissions': ['view_sales', 'create_sales']}, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    role_id = body['id']
    assert body['name'] == 'cashier'
    assert body['is_default'] is False
    assert body['permissions'] == ['view_sales', 'create_sales']

    got = client.get(f'/api/roles/{role_id}', headers=headers)
    assert got.status_code == 200
    assert got.get_json()['name'] == 'cashier'

    upd = client.put(f'/api/roles/{role_id}', json={'name': 'Head Cashier', 'permissions': ['view_sales']}, headers=headers)
    assert upd.status_code == 200, upd.get_json()
    assert upd.get_json()['name'] == 'head cashier'
    assert upd.get_json()['permissions'] == ['view_sales']

    listing = client.get('/api/roles?limit=10', headers=headers)
    assert listing.status_code == 200
    names = [r['name'] for r in listing.get_json()['data']]
    assert names == ['admin', 'assistant', 'employee', 'head cashier']
    assert listing.get_json()['pagination']['total'] == 4

    deleted = client.delete(f'/api/roles/{role_id}', headers=headers)
    assert deleted.status_code == 200
    assert client.get(f'/api/roles/{role_id}', headers=headers).status_code == 404


def test_duplicate_role_name(client):
    headers = _admin_headers()
    resp = client.post('/api/roles', json={'name': 'Admin'}, headers=headers)
    assert resp.status_code == 409
    assert resp.get_json()['message'] == 'Role already exists'


def test_role_payload_validation(client):
    headers = _admin_headers()
    assert client.post('/api/roles', json={}, headers=headers).status_code == 400
    assert client.post('/api/roles', json={'name': '   '}, headers=headers).status_code == 400
    assert client.post('/api/roles', json={'name': 'x', 'permissions': 'view_sales'}, headers=headers).status_code == 400
    unknown = client.post('/api/roles', json={'name': 'x', 'permissions': ['launch_missiles']}, headers=headers)
    assert unknown.status_code == 400
    assert unknown.get_json()['unknown'] == ['launch_missiles']
    numeric = client.post('/api/roles', json={'name': '42'}, headers=headers)
    assert numeric.status_code == 400
    assert numeric.get_json()['message'] == 'Role name cannot be numeric'


def test_default_roles_are_protected(client):
    headers = _admin_headers()
    session = get_db()
    employee = session.query(Role).filter_by(name='employee').one()

    rename = client.put(f'/api/roles/{employee.id}', json={'name': 'staff'}, headers=headers)
    assert rename.status_code == 400
    assert rename.get_json()['message'] == 'Default role names cannot be changed'

    delete = client.delete(f'/api/roles/{employee.id}', headers=headers)
    assert delete.status_code == 400
    assert delete.get_json()['message'] == 'Default roles cannot be deleted'

    extra = client.put(f'/api/roles/{employee.id}', json={'permissions': ['export_sales']}, headers=headers)
    assert extra.status_code == 200
    body = extra.get_json()
    assert body['permissions'] == ['export_sales']
    assert 'create_sales' in body['default_permissions']


def test_missing_role_returns_404(client):
    headers = _admin_headers()
    assert client.put('/api/roles/999', json={'permissions': []}, headers=headers).status_code == 404
    assert client.delete('/api/roles/999', headers=headers).status_code == 404


def test_permission_catalog_listing(client):
    headers = _admin_headers()
    body = client.get('/api/roles/permissions', headers=headers).get_json()
    assert body['permissions'] == list(ALL_PERMISSION_CODES)
    assert set(body['defaults']) == {'admin', 'assistant', 'employee'}


def test_role_edits_apply_on_next_request(client):
    admin_headers = _admin_headers()
    _, role, headers = seed_user_with_role('clerk@test.local', 'clerk', ['view_roles'])
    assert client.get('/api/roles', headers=headers).status_code == 200

    resp = client.put(f'/api/roles/{role.id}', json={'permissions': ['view_users']}, headers=admin_headers)
    assert resp.status_code == 200
    denied = client.get('/api/roles', headers=headers)
    assert denied.status_code == 403
    assert denied.get_json() == {'message': 'Insufficient permissions', 'required': 'view_roles', 'role': 'clerk'}
    assert client.get('/api/users', headers=headers).status_code == 200


def test_deleted_role_locks_out_its_tokens(client):
    admin_headers = _admin_headers()
    _, role, headers = seed_user_with_role('temp@test.local', 'temp', ['view_roles'])
    assert client.delete(f'/api/roles/{role.id}', headers=admin_headers).status_code == 200
    resp = client.get('/api/roles', headers=headers)
    assert resp.status_code == 401
    assert resp.get_json()['message'] == 'Role not found'


def test_assistant_can_view_roles_but_not_manage(client):
    _, _, headers = seed_user_with_role('asst@test.local', 'assistant')
    assert client.get('/api/roles', headers=headers).status_code == 200
    resp = client.post('/api/roles', json={'name': 'nope'}, headers=headers)
    assert resp.status_code == 403
    assert resp.get_json()['required'] == 'create_roles'
    assert client.get('/api/roles/1', headers=headers).status_code == 403
