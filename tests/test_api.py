import pytest

import pymetabox
import pymetabox.manager as manager_mod
from pymetabox.config import Settings
from pymetabox.errors import DuplicateIdError


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setattr(manager_mod, "load_settings", lambda: Settings(secret_key="api"))


def test_manager_is_created_once(settings):
    first = pymetabox.get_manager()
    assert pymetabox.get_manager() is first
    pymetabox.reset_manager()
    assert pymetabox.get_manager() is not first


def test_reset_can_install_a_manager(settings):
    custom = pymetabox.Manager(settings=Settings(secret_key="x"))
    pymetabox.reset_manager(custom)
    assert pymetabox.get_manager() is custom


def test_add_meta_box_and_get_value(settings):
    pymetabox.add_meta_box("p1", {"title": "Details", "fields": [{"name": "color", "default": "red"}]})
    assert pymetabox.get_meta_box_value("p1", "color", 1) == "red"
    pymetabox.get_manager().store.update(1, "color", "blue")
    assert pymetabox.get_meta_box_value("p1", "color", 1) == "blue"
    with pytest.raises(DuplicateIdError):
        pymetabox.add_meta_box("p1", {})
