import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskapi.auth.jwt_handler import TokenCodec
from taskapi.auth.passwords import PasswordHasher
from taskapi.core.config import Settings
from taskapi.database import Base
from taskapi.main import create_app
from taskapi.models.task import Task
from taskapi.models.user import User

DEFAULT_PASSWORD = 'Secret123'


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env='test',
        database_url='sqlite://',
        jwt_secret_key='test-signing-secret-0123456789abcdef',
        jwt_expires_minutes=60,
        bcrypt_rounds=4,
        db_connect_retries=1,
        db_connect_retry_delay=0,
        log_level='WARNING',
    )


@pytest.fixture
def codec(settings: Settings) -> TokenCodec:
    return TokenCodec(settings)


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def task_db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__, Task.__table__])

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[Task.__table__, User.__table__])
        engine.dispose()


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client: TestClient):
    def register(email: str = 'ana@example.com', name: str = 'Ana Lopez', password: str = DEFAULT_PASSWORD) -> dict:
        response = client.post('/api/auth/register', json={'name': name, 'email': email, 'password': password})
        assert response.status_code == 201, response.text
        return response.json()['data']

    return register


def auth_headers(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def user_headers(register_user) -> dict:
    return auth_headers(register_user()['token'])


@pytest.fixture
def other_headers(register_user) -> dict:
    return auth_headers(register_user(email='bob@example.com', name='Bob Stone')['token'])
