"""Tests for the handler table and plugin pipeline."""

import types

import pytest
from pydantic import ValidationError

from smartmodule import Router, route
from smartmodule.core.base_router import BaseRouter
from smartmodule.plugins._base_plugin import BasePlugin, CommandEntry  # Not public API


class TagPlugin(BasePlugin):
    plugin_code = "tag"
    plugin_description = "Prefixes results with a label"

    def configure(self, enabled: bool = True, label: str = "tag"):
        """Label options."""

    def wrap_handler(self, entry, call_next):
        def tagged(*args):
            return f"{self.options_for(entry)['label']}:{call_next(*args)}"

        return tagged


class CapturePlugin(BasePlugin):
    plugin_code = "capture"
    plugin_description = "Records calls"

    __slots__ = ("calls",)

    def __init__(self, router, **options):
        self.calls = []
        super().__init__(router, **options)

    def on_decore(self, entry):
        super().on_decore(entry)
        entry.metadata["capture"] = True

    def wrap_handler(self, entry, call_next):
        def wrapper(*args):
            self.calls.append((entry.name, args))
            return call_next(*args)

        return wrapper


def ensure_plugin(plugin_cls: type) -> None:
    if plugin_cls.plugin_code not in Router.available_plugins():
        Router.register_plugin(plugin_cls)


ensure_plugin(TagPlugin)
ensure_plugin(CapturePlugin)


def make_script(name="greet", path=None):
    script = types.ModuleType(name)
    script.__file__ = path or f"/srv/bin/{name}.py"
    return script


class Service:
    def __init__(self, label):
        self.label = label
        self.api = Router(self, name="api")

    @route("svc", router="api")
    def describe(self):
        return f"service:{self.label}"

    @route("svc::list", router="api")
    def list_items(self, *items):
        return [self.label, *items]


def test_instance_owner_binds_marked_methods():
    svc = Service("acme")
    assert svc.api.entries() == ("svc", "svc::list")
    assert svc.api.get("svc")() == "service:acme"
    assert svc.api.get("svc::list")("a", "b") == ["acme", "a", "b"]


def test_module_owner_keeps_plain_functions():
    script = make_script()

    @route("greet::hello")
    def hello(name):
        return f"Hello, {name}!"

    @route()
    def greet(*args):
        return args

    script.hello = hello
    script.greet = greet
    router = Router(script)
    assert set(router.entries()) == {"greet::hello", "greet"}
    assert router.get("greet::hello")("Terry") == "Hello, Terry!"
    assert router.get("greet")("x", "y") == ("x", "y")


def test_markers_are_filtered_by_router_name():
    script = make_script()

    @route("greet", router="admin")
    def admin_only():
        return "admin"

    @route("greet")
    def public():
        return "public"

    script.admin_only = admin_only
    script.public = public
    assert Router(script).get("greet")() == "public"
    assert Router(script, name="admin").get("greet")() == "admin"


def test_function_with_several_markers_gets_several_names():
    script = make_script()

    @route("greet::hi")
    @route("greet::hello")
    def hello():
        return "hi"

    script.hello = hello
    router = Router(script)
    assert set(router.entries()) == {"greet::hello", "greet::hi"}


def test_add_entry_accepts_callables_and_attribute_names():
    script = make_script()

    def greet():
        return 1

    script.greet = greet
    router = Router(script, auto_discover=False)
    router.add_entry("greet")
    router.add_entry(lambda: 2, name="greet::two", note="x")
    assert router.entries() == ("greet", "greet::two")
    assert router._entries["greet::two"].metadata == {"note": "x"}


def test_add_entry_rejects_collisions_and_bad_targets():
    script = make_script()

    def one():
        return 1

    router = Router(script, auto_discover=False)
    router.add_entry(one, name="greet")
    with pytest.raises(ValueError):
        router.add_entry(one, name="greet")
    router.add_entry(lambda: 2, name="greet", replace=True)
    assert router.get("greet")() == 2
    with pytest.raises(TypeError):
        router.add_entry(42)
    with pytest.raises(AttributeError):
        router.add_entry("missing")


def test_duplicate_marked_names_raise():
    script = make_script()

    @route("greet")
    def first():
        return 1

    @route("greet")
    def second():
        return 2

    script.first = first
    script.second = second
    with pytest.raises(ValueError):
        Router(script)


def test_owner_is_required():
    with pytest.raises(ValueError):
        BaseRouter(None)


def test_unknown_names_are_not_implemented():
    router = Router(make_script())
    assert not router.has_entry("greet")
    with pytest.raises(NotImplementedError):
        router.get("greet")


def test_refresh_picks_up_functions_defined_later():
    script = make_script()
    router = Router(script)
    assert router.entries() == ()

    @route("greet")
    def greet():
        return "late"

    script.greet = greet
    router.refresh()
    assert router.has_entry("greet")
    assert router.get("greet")() == "late"

    del script.greet
    router.refresh()
    assert not router.has_entry("greet")


def test_refresh_keeps_explicit_entries():
    script = make_script()
    router = Router(script)
    router.add_entry(lambda: "manual", name="greet::manual")
    router.refresh()
    assert router.get("greet::manual")() == "manual"


def test_refresh_does_not_undo_explicit_replace():
    script = make_script()

    @route("greet")
    def greet():
        return "marked"

    script.greet = greet
    router = Router(script)
    router.add_entry(lambda: "manual", name="greet", replace=True)
    router.refresh()
    assert router.get("greet")() == "manual"


def test_plugin_scoped_marker_options_override_router_options():
    script = make_script()

    @route("greet", tag_label="marked", note="kept")
    def greet():
        return "ok"

    @route("greet::plain")
    def plain():
        return "ok"

    script.greet = greet
    script.plain = plain
    router = Router(script).plug("tag", label="router")
    entry = router._entries["greet"]
    assert entry.metadata == {"note": "kept", "plugin_config": {"tag": {"label": "marked"}}}
    assert router.get("greet")() == "marked:ok"
    assert router.get("greet::plain")() == "router:ok"
    assert router.tag.options_for(router._entries["greet::plain"]) == {
        "enabled": True,
        "label": "router",
    }


def test_plug_wraps_handlers_and_runs_on_decore():
    script = make_script()

    @route("greet")
    def greet(*args):
        return "ok"

    script.greet = greet
    router = Router(script).plug("capture")
    assert router.get("greet")("a") == "ok"
    assert router.capture.calls == [("greet", ("a",))]
    entry = router._entries["greet"]
    assert isinstance(entry, CommandEntry)
    assert entry.metadata["capture"] is True
    assert entry.plugins == ["capture"]
    assert router.iter_plugins() == [router.capture]


def test_entries_added_after_plug_are_wrapped():
    router = Router(make_script(), auto_discover=False).plug("capture")
    router.add_entry(lambda: "ok", name="greet")
    assert router.get("greet")() == "ok"
    assert router.capture.calls == [("greet", ())]
    assert router._entries["greet"].plugins == ["capture"]


def test_first_attached_plugin_is_outermost():
    router = Router(make_script(), auto_discover=False).plug("capture").plug("tag")
    router.add_entry(lambda: "ok", name="greet")
    assert router.get("greet")() == "tag:ok"
    assert router.capture.calls == [("greet", ())]


def test_disabled_plugin_passes_calls_through():
    script = make_script()

    @route("greet", capture_enabled=False)
    def greet():
        return "ok"

    @route("greet::hello")
    def hello():
        return "hi"

    script.greet = greet
    script.hello = hello
    router = Router(script).plug("capture")
    assert router.get("greet")() == "ok"
    assert router.get("greet::hello")() == "hi"
    assert router.capture.calls == [("greet::hello", ())]

    router.capture.configure(enabled=False)
    router.get("greet::hello")()
    assert len(router.capture.calls) == 1


def test_plugin_options_are_validated():
    with pytest.raises(ValidationError):
        Router(make_script(), auto_discover=False).plug("tag", colour="red")

    script = make_script()

    @route("greet", tag_enabled="not a bool")
    def greet():
        return "ok"

    script.greet = greet
    with pytest.raises(ValidationError):
        Router(script).plug("tag")


def test_plugin_registry_validation():
    class NoCodePlugin(BasePlugin):
        plugin_code = ""

    class OtherTag(BasePlugin):
        plugin_code = "tag"

    with pytest.raises(TypeError):
        Router.register_plugin(object)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        Router.register_plugin(NoCodePlugin)
    with pytest.raises(ValueError):
        Router.register_plugin(OtherTag)
    Router.register_plugin(TagPlugin)  # idempotent

    router = Router(make_script(), auto_discover=False)
    with pytest.raises(ValueError):
        router.plug("missing")
    with pytest.raises(TypeError):
        router.plug(TagPlugin)  # type: ignore[arg-type]
    with pytest.raises(AttributeError):
        router.not_a_plugin
