import io
import logging

import pytest

from pymetabox.config import Settings
from pymetabox.errors import DuplicateIdError, UnknownFieldError, UnknownPanelError
from pymetabox.host import ContentItem, Request
from pymetabox.manager import Manager
from pymetabox.panel import PanelSpec
from pymetabox.validators import required
from tests.utils import host_render, make_manager, nonce_from, signed


def _register_two(manager):
    manager.register("p1", {"title": "One", "screen": "post", "fields": [{"name": "a", "default": "x"}]})
    manager.register(
        "p2",
        {"title": "Two", "screen": "page", "context": "side", "priority": "high",
         "fields": [{"name": "b"}]},
    )


def test_duplicate_id_keeps_first_registration():
    manager, _ = make_manager()
    manager.register("p1", {"title": "First"})
    with pytest.raises(DuplicateIdError):
        manager.register("p1", {"title": "Second"})
    assert len(manager) == 1
    assert manager.get("p1").title == "First"


def test_register_accepts_panel_spec():
    manager, _ = make_manager()
    metabox = manager.register("p1", PanelSpec(id="p1", title="T"))
    assert metabox.spec.title == "T"
    with pytest.raises(ValueError):
        manager.register("p2", PanelSpec(id="other"))


def test_iteration_is_registration_order():
    manager, _ = make_manager()
    _register_two(manager)
    assert [m.id for m in manager] == ["p1", "p2"]
    assert "p1" in manager and "p3" not in manager


def test_add_meta_boxes_declares_every_panel():
    manager, host = make_manager()
    _register_two(manager)
    host.do_action("add_meta_boxes")
    assert list(host.panels) == ["p1", "p2"]
    p2 = host.panels["p2"]
    assert (p2.title, p2.screen, p2.context, p2.priority) == ("Two", ("page",), "side", "high")
    assert p2.callback == manager.render


def test_render_dispatch_through_host():
    manager, host = make_manager()
    _register_two(manager)
    host.do_action("add_meta_boxes")
    out = io.StringIO()
    host.render_panel(ContentItem(5), "p1", out)
    assert 'name="a" value="x"' in out.getvalue()


def test_render_unknown_panel():
    manager, _ = make_manager()
    with pytest.raises(UnknownPanelError):
        manager.render(ContentItem(1), {"id": "nope"}, io.StringIO())


def test_save_dispatches_to_every_metabox():
    manager, host = make_manager()
    _register_two(manager)
    form = {**signed(manager, "p1", {"a": "1"}), **signed(manager, "p2", {"b": "2"})}
    host.do_action("save_post", 7, Request(form=form))
    assert manager.store.get(7, "a") == "1"
    assert manager.store.get(7, "b") == "2"


def test_save_returns_persisted_ids():
    manager, _ = make_manager()
    _register_two(manager)
    # p2 has no token and is skipped
    saved = manager.save_meta_boxes(7, Request(form=signed(manager, "p1", {"a": "1", "b": "2"})))
    assert saved == ["p1"]
    assert all(key != "b" for _, key, _ in manager.store.updates)
    assert manager.store.get(7, "b") is None


def test_autosave_is_ignored():
    manager, _ = make_manager()
    _register_two(manager)
    request = Request(form=signed(manager, "p1", {"a": "1"}), autosave=True)
    assert manager.save_meta_boxes(7, request) == []
    assert manager.store.updates == []


def test_permission_denied_aborts_dispatch(caplog):
    manager, _ = make_manager(editors={"alice"})
    _register_two(manager)
    form = signed(manager, "p1", {"a": "1"}, user="bob")
    with caplog.at_level(logging.WARNING, logger="pymetabox"):
        assert manager.save_meta_boxes(7, Request(form=form, user="bob")) == []
    assert manager.store.updates == []
    assert "may not edit" in caplog.text

    form = signed(manager, "p1", {"a": "1"}, user="alice")
    assert manager.save_meta_boxes(7, Request(form=form, user="alice")) == ["p1"]


def test_failing_metabox_does_not_block_others(monkeypatch, caplog):
    manager, _ = make_manager()
    _register_two(manager)

    def boom(*args, **kwargs):
        raise RuntimeError("store exploded")

    monkeypatch.setattr(manager.get("p1"), "save", boom)
    form = {**signed(manager, "p1", {"a": "1"}), **signed(manager, "p2", {"b": "2"})}
    with caplog.at_level(logging.ERROR, logger="pymetabox"):
        assert manager.save_meta_boxes(7, Request(form=form)) == ["p2"]
    assert manager.store.get(7, "b") == "2"
    assert "saving metabox p1 for 7 failed" in caplog.text


def test_save_requires_attached_host():
    manager = Manager(settings=Settings(secret_key="s"))
    manager.register("p1", {"fields": [{"name": "a"}]})
    with pytest.raises(RuntimeError):
        manager.save_meta_boxes(1, Request(form={}))


def test_print_style_only_for_targeted_screens():
    manager, host = make_manager()
    _register_two(manager)
    out = io.StringIO()
    host.do_action("admin_footer", "page", out)
    css = out.getvalue()
    assert css.startswith("<style>") and css.endswith("</style>")
    assert css.count("<style>") == 1
    assert ".pymetabox" in css

    out = io.StringIO()
    manager.print_style("dashboard", out)
    assert out.getvalue() == ""


def test_get_meta_box_value():
    manager, _ = make_manager()
    manager.register("p1", {"fields": [{"name": "color", "default": "red", "validate": required()}]})
    assert manager.get_meta_box_value("p1", "color", 3) == "red"
    manager.store.update(3, "color", "blue")
    assert manager.get_meta_box_value("p1", "color", 3) == "blue"
    with pytest.raises(UnknownPanelError):
        manager.get_meta_box_value("nope", "color", 3)
    with pytest.raises(UnknownFieldError):
        manager.get_meta_box_value("p1", "nope", 3)


def test_host_render_token_saves_for_editor():
    manager, host = make_manager(editors={"alice"})
    manager.register("p1", {"screen": "post", "fields": [{"name": "color"}]})
    host.do_action("add_meta_boxes")
    token = nonce_from(host_render(host, "p1", 1, user="alice"), "p1")

    form = {"p1_nonce": token, "color": "blue"}
    host.do_action("save_post", 1, Request(form=form, user="alice"))
    assert manager.store.get(1, "color") == "blue"

    # the token was issued to alice and does not work for another editor
    host.editors = {"alice", "bob"}
    form = {"p1_nonce": token, "color": "green"}
    assert manager.save_meta_boxes(1, Request(form=form, user="bob")) == []
    assert manager.store.get(1, "color") == "blue"
