import json

from extractor_app.storage import HISTORY_KEY, THEME_KEY, JsonFileStore


def test_missing_file_reads_as_empty(tmp_path):
    store = JsonFileStore(tmp_path / "nope.json")
    assert store.get(THEME_KEY) is None


def test_set_rewrites_whole_file(tmp_path):
    path = tmp_path / "storage.json"
    store = JsonFileStore(path)
    store.set(THEME_KEY, "dark")
    store.set(HISTORY_KEY, "[]")
    assert json.loads(path.read_text(encoding="utf-8")) == {THEME_KEY: "dark", HISTORY_KEY: "[]"}
    assert not (tmp_path / "storage.json.tmp").exists()


def test_delete_keeps_other_keys(tmp_path):
    store = JsonFileStore(tmp_path / "storage.json")
    store.set(THEME_KEY, "dark")
    store.set(HISTORY_KEY, "[]")
    store.delete(HISTORY_KEY)
    assert store.get(HISTORY_KEY) is None
    assert store.get(THEME_KEY) == "dark"


def test_corrupted_file_is_treated_as_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{{{", encoding="utf-8")
    store = JsonFileStore(path)
    assert store.get(HISTORY_KEY) is None
    store.set(THEME_KEY, "light")
    assert store.get(THEME_KEY) == "light"


def test_non_string_values_are_ignored(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text(json.dumps({THEME_KEY: 1, HISTORY_KEY: "[]"}), encoding="utf-8")
    store = JsonFileStore(path)
    assert store.get(THEME_KEY) is None
    assert store.get(HISTORY_KEY) == "[]"
