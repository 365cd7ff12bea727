import json
import stat
from threading import Thread

import pytest

from userhub.errors import (
    RecordValidationError,
    StorageParseError,
    StorageReadError,
    StorageWriteError,
    UserConflictError,
    UserNotFoundError,
)
from userhub.stores.json_file import JsonFileUserStore


def _read(path) -> list:
    return json.loads(path.read_text(encoding='utf-8'))


@pytest.fixture
def store(users_file) -> JsonFileUserStore:
    users_file.write_text(
        json.dumps([
            {'id': 1, 'name': 'Ana', 'role': 'USER'},
            {'id': 2, 'name': 'Beto', 'email': 'beto@mail.com', 'role': 'ADMIN', 'team': 'ops'},
        ]),
        encoding='utf-8',
    )
    return JsonFileUserStore(users_file)


def test_list_users_returns_file_contents_verbatim(store: JsonFileUserStore) -> None:
    assert store.list_users() == [
        {'id': 1, 'name': 'Ana', 'role': 'USER'},
        {'id': 2, 'name': 'Beto', 'email': 'beto@mail.com', 'role': 'ADMIN', 'team': 'ops'},
    ]


def test_list_users_raises_read_error_when_file_is_missing(tmp_path) -> None:
    store = JsonFileUserStore(tmp_path / 'missing.json')

    with pytest.raises(StorageReadError):
        store.list_users()


@pytest.mark.parametrize('contents', ['{not json', '{"id": 1}', ''])
def test_list_users_raises_parse_error_for_invalid_contents(users_file, contents: str) -> None:
    users_file.write_text(contents, encoding='utf-8')

    with pytest.raises(StorageParseError):
        JsonFileUserStore(users_file).list_users()


def test_create_user_appends_and_persists(store: JsonFileUserStore, users_file) -> None:
    created = store.create_user({'id': 3, 'name': 'Carla', 'role': 'USER'})

    assert created == {'id': 3, 'name': 'Carla', 'role': 'USER'}
    assert _read(users_file)[-1] == created
    assert len(_read(users_file)) == 3


def test_create_user_requires_id(store: JsonFileUserStore) -> None:
    with pytest.raises(RecordValidationError):
        store.create_user({'name': 'Nobody'})


def test_create_user_with_existing_id_conflicts_and_leaves_file_unchanged(store: JsonFileUserStore, users_file) -> None:
    before = users_file.read_text(encoding='utf-8')

    with pytest.raises(UserConflictError):
        store.create_user({'id': 1, 'name': 'Impostor'})

    assert users_file.read_text(encoding='utf-8') == before


def test_update_user_merges_only_supplied_fields(store: JsonFileUserStore, users_file) -> None:
    merged = store.update_user(2, {'name': 'Roberto'})

    assert merged == {'id': 2, 'name': 'Roberto', 'email': 'beto@mail.com', 'role': 'ADMIN', 'team': 'ops'}
    assert _read(users_file)[1] == merged
    assert _read(users_file)[0] == {'id': 1, 'name': 'Ana', 'role': 'USER'}


def test_update_user_can_replace_the_id(store: JsonFileUserStore, users_file) -> None:
    merged = store.update_user(1, {'id': 10})

    assert merged['id'] == 10
    assert [user['id'] for user in _read(users_file)] == [10, 2]


def test_update_user_raises_not_found_for_unknown_id(store: JsonFileUserStore) -> None:
    with pytest.raises(UserNotFoundError):
        store.update_user(99, {'name': 'Ghost'})


def test_delete_user_removes_exactly_one_record(store: JsonFileUserStore, users_file) -> None:
    store.delete_user(1)

    assert _read(users_file) == [
        {'id': 2, 'name': 'Beto', 'email': 'beto@mail.com', 'role': 'ADMIN', 'team': 'ops'},
    ]


def test_delete_user_unknown_id_keeps_record_count(store: JsonFileUserStore, users_file) -> None:
    with pytest.raises(UserNotFoundError):
        store.delete_user(42)

    assert len(_read(users_file)) == 2


def test_writes_leave_no_temporary_files(store: JsonFileUserStore, users_file, tmp_path) -> None:
    store.create_user({'id': 3, 'name': 'Carla'})
    store.update_user(3, {'name': 'Carlota'})
    store.delete_user(3)

    assert list(tmp_path.iterdir()) == [users_file]


def test_failed_replace_raises_write_error_and_keeps_file(
    store: JsonFileUserStore, users_file, tmp_path, monkeypatch: pytest.MonkeyPatch
) -> None:
    before = users_file.read_text(encoding='utf-8')

    def failing_replace(src, dst):
        raise OSError('disk full')

    monkeypatch.setattr('userhub.stores.json_file.os.replace', failing_replace)

    with pytest.raises(StorageWriteError):
        store.create_user({'id': 3, 'name': 'Carla'})

    assert users_file.read_text(encoding='utf-8') == before
    assert list(tmp_path.iterdir()) == [users_file]


def test_initialize_creates_empty_file_once(tmp_path) -> None:
    path = tmp_path / 'data' / 'users.json'
    store = JsonFileUserStore(path)

    store.initialize()
    assert _read(path) == []

    store.create_user({'id': 1, 'name': 'Ana'})
    store.initialize()
    assert _read(path) == [{'id': 1, 'name': 'Ana'}]


def test_concurrent_creates_do_not_lose_updates(users_file) -> None:
    store = JsonFileUserStore(users_file)
    threads = [Thread(target=store.create_user, args=({'id': n, 'name': f'user-{n}'},)) for n in range(20)]

    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(user['id'] for user in _read(users_file)) == list(range(20))


def test_writes_keep_the_file_permissions(store: JsonFileUserStore, users_file) -> None:
    users_file.chmod(0o640)

    store.create_user({'id': 3, 'name': 'Carla'})

    assert stat.S_IMODE(users_file.stat().st_mode) == 0o640
