import pytest
from fastapi.testclient import TestClient

from userhub.core import config
from userhub.database import Database
from userhub.main import create_app


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'BCRYPT_ROUNDS', 4)


@pytest.fixture
def users_file(tmp_path):
    path = tmp_path / 'users.json'
    path.write_text('[]', encoding='utf-8')
    return path


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'store.db'}")
    db.create_schema()
    try:
        yield db
    finally:
        db.dispose()


def _build_client(tmp_path, users_file, store_backend: str):
    app = create_app(
        database_url=f"sqlite:///{tmp_path / 'app.db'}",
        users_file_path=str(users_file),
        store_backend=store_backend,
    )
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def client(tmp_path, users_file):
    with _build_client(tmp_path, users_file, 'file') as test_client:
        yield test_client


@pytest.fixture
def db_client(tmp_path, users_file):
    with _build_client(tmp_path, users_file, 'database') as test_client:
        yield test_client
