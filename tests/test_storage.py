from __future__ import annotations

from tracker.storage import LocalStorage, clear, get_item, init_db, list_keys, remove_item, set_item


def test_repo_functions(db_url):
    init_db(db_url)
    init_db(db_url)  # idempotent

    assert get_item(db_url, "missing") is None
    set_item(db_url, "b", "2")
    set_item(db_url, "a", "1")
    set_item(db_url, "a", "one")
    assert get_item(db_url, "a") == "one"
    assert list_keys(db_url) == ["a", "b"]

    assert remove_item(db_url, "a") is True
    assert remove_item(db_url, "a") is False
    assert clear(db_url) == 1
    assert list_keys(db_url) == []


def test_local_storage_mapping_protocol(storage):
    assert len(storage) == 0
    storage["user"] = '{"id": "1"}'
    storage.set_item("other", "x")

    assert "user" in storage
    assert "nope" not in storage
    assert storage["user"] == '{"id": "1"}'
    assert storage.get("nope") is None
    assert sorted(storage) == ["other", "user"]

    del storage["user"]
    assert storage.get_item("user") is None
    try:
        del storage["user"]
    except KeyError:
        pass
    else:
        raise AssertionError("expected KeyError")

    storage.clear()
    assert storage.keys() == []


def test_values_survive_a_new_instance(db_url):
    LocalStorage(db_url).set_item("fealtyx_tasks", "[]")
    assert LocalStorage(db_url).get_item("fealtyx_tasks") == "[]"


def test_in_memory_sqlite():
    s = LocalStorage("sqlite://")
    s["k"] = "v"
    assert s["k"] == "v"
