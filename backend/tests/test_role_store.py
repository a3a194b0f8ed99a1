import pytest
from sqlalchemy.exc import OperationalError
from backoffice.constants.permissions import BUILTIN_ROLE_NAMES
from backoffice.errors import (
    DuplicateName, ImmutableName, InvalidRoleName, NotFound, ProtectedRole, StoreUnavailable, UnknownPermission,
)
from backoffice.services.roles import RoleStore, normalize_permissions, normalize_role_name


def test_default_roles_seeded_once(store):
    first = store.ensure_default_roles()
    again = store.ensure_default_roles()
    assert [r.name for r in first] == list(BUILTIN_ROLE_NAMES)
    assert [r.id for r in first] == [r.id for r in again]
    assert all(r.is_default for r in first)


def test_create_normalizes_name_and_dedupes_permissions(store):
    role = store.create('  Cashier ', permissions=['view_sales', 'create_sales', 'view_sales'])
    assert role.id is not None
    assert role.name == 'cashier'
    assert role.is_default is False
    assert role.permissions == ['view_sales', 'create_sales']
    assert store.find_by_name('cashier').id == role.id
    assert store.find_by_id(role.id).name == 'cashier'


def test_find_by_name_is_exact(store):
    assert store.find_by_name('admin') is not None
    assert store.find_by_name('Admin') is None
    assert store.find_by_id(99999) is None


@pytest.mark.parametrize('name', ['Admin', ' admin ', 'ADMIN'])
def test_duplicate_name_ignores_case_and_whitespace(store, name):
    with pytest.raises(DuplicateName) as exc:
        store.create(name)
    assert exc.value.status_code == 409


def test_unique_constraint_is_the_authority(store, monkeypatch):
    store.create('cashier')
    # simulate losing a race: the pre-check sees nothing, the insert hits the constraint
    monkeypatch.setattr(store, 'find_by_name', lambda name: None)
    with pytest.raises(DuplicateName):
        store.create('Cashier')
    monkeypatch.undo()
    assert store.find_by_name('cashier') is not None


def test_create_rejects_blank_name_and_unknown_permissions(store):
    with pytest.raises(InvalidRoleName):
        store.create('   ')
    with pytest.raises(UnknownPermission) as exc:
        store.create('auditor', permissions=['view_sales', 'fly_rockets'])
    assert exc.value.details['unknown'] == ['fly_rockets']
    assert store.find_by_name('auditor') is None


def test_numeric_role_names_are_rejected(store):
    with pytest.raises(InvalidRoleName) as exc:
        store.create(' 42 ')
    assert exc.value.status_code == 400
    assert store.find_by_name('42') is None
    role = store.create('cashier')
    with pytest.raises(InvalidRoleName):
        store.update(role.id, name='7')
    assert store.find_by_id(role.id).name == 'cashier'


def test_update_custom_role(store):
    role = store.create('cashier', permissions=['view_sales'])
    updated = store.update(role.id, permissions=['create_sales'], name='Senior Cashier')
    assert updated.name == 'senior cashier'
    assert updated.permissions == ['create_sales']
    assert store.find_by_id(role.id).permissions == ['create_sales']


def test_update_rename_collision(store):
    role = store.create('cashier')
    with pytest.raises(DuplicateName):
        store.update(role.id, name=' Employee')


def test_default_role_name_is_immutable_but_permissions_are_editable(store):
    employee = store.find_by_name('employee')
    with pytest.raises(ImmutableName):
        store.update(employee.id, name='staff')
    # same name after normalization is not a rename
    assert store.update(employee.id, name=' EMPLOYEE ').name == 'employee'
    updated = store.update(employee.id, permissions=['delete_products'])
    assert updated.permissions == ['delete_products']
    assert updated.is_default is True


def test_update_and_delete_missing_role(store):
    with pytest.raises(NotFound) as exc:
        store.update(424242, permissions=[])
    assert exc.value.status_code == 404
    with pytest.raises(NotFound):
        store.delete(424242)


def test_delete(store):
    role = store.create('temp')
    store.delete(role.id)
    assert store.find_by_id(role.id) is None


@pytest.mark.parametrize('name', BUILTIN_ROLE_NAMES)
def test_default_roles_cannot_be_deleted(store, name):
    role = store.find_by_name(name)
    with pytest.raises(ProtectedRole):
        store.delete(role.id)
    assert store.find_by_id(role.id) is not None


def test_store_outage_is_distinct_error(session, monkeypatch):
    def boom(*a, **k):
        raise OperationalError('SELECT 1', {}, Exception('database is locked'))
    monkeypatch.setattr(session, 'execute', boom)
    with pytest.raises(StoreUnavailable) as exc:
        RoleStore(session).find_by_id(1)
    assert exc.value.status_code == 503


def test_normalizers():
    assert normalize_role_name(' Mixed Case ') == 'mixed case'
    assert normalize_role_name(None) == ''
    assert normalize_permissions(['view_sales', 'view_sales']) == ['view_sales']
    with pytest.raises(UnknownPermission):
        normalize_permissions([1])
