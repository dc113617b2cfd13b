import pytest

from vaultstore import (
    EntryNotFoundError,
    JsonFileStore,
    MemoryStore,
    SqliteStore,
    UserAlreadyExistsError,
    create_store,
)


def _make_user(store, username="alice", email="alice@example.com"):
    return store.create_user(username, "s3cret", email)


def test_create_and_lookup_user(store):
    user = _make_user(store)
    assert user["password_hash"] != "s3cret"
    assert store.get_user_by_id(user["id"])["username"] == "alice"
    assert store.get_user_by_username("alice")["id"] == user["id"]
    assert store.get_user_by_email("alice@example.com")["id"] == user["id"]
    assert store.get_user_by_username("nobody") is None


def test_duplicate_username_rejected(store):
    _make_user(store)
    with pytest.raises(UserAlreadyExistsError):
        store.create_user("alice", "other", "")


def test_duplicate_email_rejected(store):
    _make_user(store)
    with pytest.raises(UserAlreadyExistsError):
        store.create_user("bob", "pw", "alice@example.com")


def test_empty_email_may_repeat(store):
    store.create_user("a", "pw")
    store.create_user("b", "pw")
    assert store.get_user_by_username("b") is not None


def test_verify_credentials(store):
    user = _make_user(store)
    assert store.verify_credentials("alice", "s3cret")["id"] == user["id"]
    assert store.verify_credentials("alice", "wrong") is None
    assert store.verify_credentials("nobody", "s3cret") is None


def test_reset_password_requires_matching_email(store):
    _make_user(store)
    assert not store.reset_password("alice", "other@example.com", "new")
    assert not store.reset_password("nobody", "alice@example.com", "new")
    assert store.reset_password("alice", "alice@example.com", "new")
    assert store.verify_credentials("alice", "new") is not None
    assert store.verify_credentials("alice", "s3cret") is None


def test_reset_password_needs_an_email_on_file(store):
    store.create_user("noemail", "pw")
    assert not store.reset_password("noemail", "", "new")


def test_entry_crud(store):
    user = _make_user(store)
    entry = store.create_entry(user["id"], "GitHub", "JBSWY3DPEHPK3PXP", "GitHub", "alice", 8, 60)
    assert entry["digits"] == 8 and entry["time_step"] == 60

    assert store.get_entry(entry["id"], user["id"])["secret"] == "JBSWY3DPEHPK3PXP"
    assert [e["id"] for e in store.list_entries(user["id"])] == [entry["id"]]

    updated = store.update_entry(entry["id"], user["id"], name="GH", issuer=None)
    assert updated["name"] == "GH"
    assert updated["issuer"] == "GitHub"
    assert store.get_entry(entry["id"], user["id"])["name"] == "GH"

    assert store.delete_entry(entry["id"], user["id"])
    assert store.get_entry(entry["id"], user["id"]) is None
    assert not store.delete_entry(entry["id"], user["id"])


def test_entry_defaults(store):
    user = _make_user(store)
    entry = store.create_entry(user["id"], "Plain", "JBSWY3DPEHPK3PXP")
    assert (entry["issuer"], entry["account_name"], entry["digits"], entry["time_step"]) == ("", "", 6, 30)


def test_entries_are_scoped_to_their_owner(store):
    alice = _make_user(store)
    bob = _make_user(store, "bob", "bob@example.com")
    entry = store.create_entry(alice["id"], "Mine", "JBSWY3DPEHPK3PXP")

    assert store.list_entries(bob["id"]) == []
    assert store.get_entry(entry["id"], bob["id"]) is None
    assert not store.delete_entry(entry["id"], bob["id"])
    with pytest.raises(EntryNotFoundError):
        store.update_entry(entry["id"], bob["id"], name="stolen")
    assert store.get_entry(entry["id"], alice["id"])["name"] == "Mine"


def test_list_entries_oldest_first(store):
    user = _make_user(store)
    ids = [store.create_entry(user["id"], f"e{i}", "JBSWY3DPEHPK3PXP")["id"] for i in range(3)]
    assert [e["id"] for e in store.list_entries(user["id"])] == ids


def test_json_store_persists_between_instances(tmp_path):
    path = str(tmp_path / "vault.json")
    user = JsonFileStore(path).create_user("alice", "pw")
    reopened = JsonFileStore(path)
    assert reopened.get_user_by_id(user["id"])["username"] == "alice"


def test_sqlite_store_persists_between_instances(tmp_path):
    path = str(tmp_path / "vault.db")
    store = SqliteStore(path)
    user = store.create_user("alice", "pw")
    store.create_entry(user["id"], "e", "JBSWY3DPEHPK3PXP")
    reopened = SqliteStore(path)
    assert len(reopened.list_entries(user["id"])) == 1


def test_memory_store_returns_copies():
    store = MemoryStore()
    user = store.create_user("alice", "pw")
    fetched = store.get_user_by_id(user["id"])
    fetched["username"] = "mallory"
    assert store.get_user_by_id(user["id"])["username"] == "alice"


def test_create_store_by_backend_name(tmp_path):
    assert isinstance(create_store({"STORAGE_BACKEND": "memory"}), MemoryStore)
    assert isinstance(
        create_store({"STORAGE_BACKEND": "json", "JSON_STORE_PATH": str(tmp_path / "v.json")}),
        JsonFileStore,
    )
    assert isinstance(
        create_store({"STORAGE_BACKEND": "SQLite", "SQLITE_PATH": str(tmp_path / "v.db")}),
        SqliteStore,
    )
    with pytest.raises(ValueError):
        create_store({"STORAGE_BACKEND": "redis"})
