import os, sys, pytest
# Ensure backend directory is on path so 'backoffice' and 'tests' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from backoffice import create_app, get_db
from backoffice.models.authz import Base
from backoffice.services.roles import RoleStore

TEST_CONFIG = {
    'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
    'JWT_SECRET_KEY': 'test-secret-key-with-at-least-32-bytes!!',
    'TESTING': True,
}


@pytest.fixture()
def app_instance():
    # fresh in-memory database per test; built-in roles are always present
    app = create_app(TEST_CONFIG)
    with app.app_context():
        session = get_db()
        Base.metadata.create_all(session.get_bind())
        RoleStore(session).ensure_default_roles()
        yield app
        session.close()


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def session(app_instance):
    return get_db()


@pytest.fixture()
def store(session):
    return RoleStore(session)
