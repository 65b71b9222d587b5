import json

import pytest

from pymetabox.errors import StoreLoadError
from pymetabox.stores import InMemoryContentStore, JsonContentStore, open_content_store


def test_memory_store_roundtrip():
    store = InMemoryContentStore()
    assert store.keys(1) == []
    store.update(1, "color", "red")
    store.update(1, "tags", ["a"])
    assert store.keys(1) == ["color", "tags"]
    assert store.get("1", "color") == "red"
    assert store.get(1, "missing", "dflt") == "dflt"
    store.delete(1, "color")
    store.delete(1, "never")
    assert store.keys(1) == ["tags"]


def test_memory_store_copies_values():
    store = InMemoryContentStore()
    tags = ["a"]
    store.update(1, "tags", tags)
    tags.append("b")
    store.get(1, "tags").append("c")
    assert store.get(1, "tags") == ["a"]


def test_json_store_persists(tmp_path):
    path = tmp_path / "meta" / "content.json"
    store = JsonContentStore(path)
    store.update(1, "color", "red")
    store.update(2, "count", 3)

    again = JsonContentStore(path)
    assert again.keys(1) == ["color"]
    assert again.get(2, "count") == 3
    assert json.loads(path.read_text()) == {"1": {"color": "red"}, "2": {"count": 3}}

    again.delete(2, "count")
    assert "2" not in json.loads(path.read_text())


def test_json_store_missing_or_empty_file(tmp_path):
    path = tmp_path / "content.json"
    assert JsonContentStore(path).keys(1) == []
    path.write_text("  ")
    assert JsonContentStore(path).get(1, "x", "d") == "d"


@pytest.mark.parametrize("text", ["{not json", "[1, 2]", '{"1": "flat"}'])
def test_json_store_malformed(tmp_path, text):
    path = tmp_path / "content.json"
    path.write_text(text)
    with pytest.raises(StoreLoadError):
        JsonContentStore(path).keys(1)


def test_open_content_store(tmp_path):
    assert isinstance(open_content_store(None), InMemoryContentStore)
    store = open_content_store(tmp_path / "content.JSON")
    assert isinstance(store, JsonContentStore)
    with pytest.raises(ValueError):
        open_content_store(tmp_path / "content.xml")
