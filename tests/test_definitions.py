import json

import pytest

from pymetabox.definitions import (
    dump_definitions,
    load_definitions,
    parse_definitions,
    register_definitions,
)
from pymetabox.errors import DefinitionError, ValidationError
from tests.utils import make_manager

TOML = """
[[panels]]
id = "book"
title = "Book details"
screen = ["book", "post"]
context = "normal"

[[panels.fields]]
name = "isbn"
label = "ISBN"
validate = "required"

[[panels.fields]]
name = "pages"
kind = "number"
minimum = 1
default = 100
validate = [{ rule = "max_length", args = [4], message = "too many digits" }]

[[panels.fields]]
name = "format"
kind = "select"
choices = ["hardcover", "paperback"]
default = "paperback"
"""


def test_load_toml(tmp_path):
    path = tmp_path / "panels.toml"
    path.write_text(TOML)
    (book,) = load_definitions(path)
    assert book.id == "book"
    assert book.screen == ("book", "post")
    assert book.context == "normal"
    isbn, pages, fmt = book.fields
    with pytest.raises(ValidationError):
        isbn.clean("")
    assert pages.options == {"minimum": 1}
    assert pages.default == 100
    with pytest.raises(ValidationError) as exc:
        pages.clean("12345")
    assert exc.value.message == "too many digits"
    assert fmt.options["choices"] == ["hardcover", "paperback"]


def test_load_json(tmp_path):
    path = tmp_path / "panels.json"
    path.write_text(json.dumps({"panels": [{"id": "p1", "fields": [{"name": "a", "type": "textarea"}]}]}))
    (p1,) = load_definitions(path)
    assert p1.fields[0].kind == "textarea"


@pytest.mark.parametrize(
    "doc",
    [
        {},
        {"panels": [{"title": "no id"}]},
        {"panels": [{"id": "p", "fields": [{"name": "a", "kind": "bogus"}]}]},
        {"panels": [{"id": "p", "fields": [{"name": "a", "validate": "bogus"}]}]},
        {"panels": [{"id": "p", "fields": [{"name": "a", "validate": 3}]}]},
        {"panels": [{"id": "p", "context": "middle"}]},
        {"panels": [{"id": "p", "fields": ["a"]}]},
    ],
)
def test_malformed_documents(doc):
    with pytest.raises(DefinitionError):
        parse_definitions(doc)


def test_unsupported_suffix_and_bad_toml(tmp_path):
    path = tmp_path / "panels.yaml"
    path.write_text("panels: []")
    with pytest.raises(DefinitionError):
        load_definitions(path)
    path = tmp_path / "panels.toml"
    path.write_text("[[panels]\n")
    with pytest.raises(DefinitionError):
        load_definitions(path)


def test_dump_and_reload(tmp_path):
    src = tmp_path / "panels.toml"
    src.write_text(TOML)
    out = tmp_path / "out" / "panels.toml"
    dump_definitions(out, load_definitions(src))
    (book,) = load_definitions(out)
    assert [f.name for f in book.fields] == ["isbn", "pages", "format"]
    assert book.screen == ("book", "post")
    with pytest.raises(ValidationError):
        book.fields[0].clean("  ")
    with pytest.raises(ValidationError):
        book.fields[1].clean("12345")


def test_dump_rejects_custom_validators(tmp_path):
    manager, _ = make_manager()
    metabox = manager.register("p", {"fields": [{"name": "a", "validate": lambda v: v}]})
    with pytest.raises(DefinitionError):
        dump_definitions(tmp_path / "x.toml", [metabox.spec])


def test_register_definitions(tmp_path):
    path = tmp_path / "panels.toml"
    path.write_text(TOML)
    manager, _ = make_manager()
    assert register_definitions(manager, path) == ["book"]
    assert manager.get_meta_box_value("book", "format", 1) == "paperback"
