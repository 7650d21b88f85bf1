"""Tests for GadgetHtmlRenderer."""

import json
from unittest.mock import patch

import pytest

from gadget_container.exceptions import GadgetError
from gadget_container.features.assembler import ContentAssembler
from gadget_container.features.descriptor import FeatureDescriptor, ScriptEntry
from gadget_container.features.registry import DependencyResolver
from gadget_container.gadgets.context import GadgetContext
from gadget_container.gadgets.renderer import GadgetHtmlRenderer, js_version, split_libs
from gadget_container.gadgets.spec import FeatureRequirement, Gadget, GadgetId, Preload, View

CONFIG = {
    "gadget_css": "body{margin:0}",
    "default_js_prefix": "/gadgets/js/",
    "userpref_param_prefix": "up_",
    "libs_param_name": "libs",
    "feature_config": {"rpc": {"relay": "/rpc_relay.html"}, "views": {"home": "/home"}},
}


@pytest.fixture
def registry():
    return DependencyResolver().build({
        "core": FeatureDescriptor(name="core", gadget_scripts=(ScriptEntry.inline("core();"),)),
        "rpc": FeatureDescriptor(name="rpc", gadget_scripts=(ScriptEntry.inline("rpc();"),)),
        "settitle": FeatureDescriptor(
            name="settitle", dependencies=("rpc",), gadget_scripts=(ScriptEntry.inline("title();"),)
        ),
    })


@pytest.fixture
def assembler(registry, stub_fetcher):
    return ContentAssembler(registry, stub_fetcher, compress=False)


@pytest.fixture
def renderer(registry, assembler, stub_fetcher):
    return GadgetHtmlRenderer(registry, assembler, config=CONFIG, fetcher=stub_fetcher)


@pytest.fixture
def gadget():
    gadget = Gadget(
        id=GadgetId("http://example.com/g.xml", 3),
        title="Hello",
        requires={"settitle": FeatureRequirement("settitle")},
        views={
            "default": View(name="default", content="<b>hi</b>", quirks=False),
            "canvas": View(name="canvas", type="url", href="http://example.com/canvas?x=1"),
            "quirky": View(name="quirky", content="q"),
        },
    )
    gadget.js_features = ["core", "rpc", "settitle"]
    gadget.feature_content = "core();\nrpc();\ntitle();\n"
    gadget.message_bundle = {"hello": "Hallo"}
    gadget.user_pref_values = {"name": "Ada Lovelace"}
    return gadget


class TestRender:
    """Test html view rendering."""

    def test_document_structure(self, renderer, gadget):
        html = renderer.render(gadget, GadgetContext(url=gadget.id.url))

        assert html.startswith("<!DOCTYPE HTML")
        assert "<style type=\"text/css\">body{margin:0}</style>" in html
        assert "core();\nrpc();\ntitle();\n" in html
        assert 'gadgets.Prefs.setMessages_({"hello": "Hallo"});' in html
        assert 'gadgets.Prefs.setDefaultPrefs_({"name": "Ada Lovelace"});' in html
        assert "gadgets.io.preloaded_ = {};" in html
        assert html.index("title();") < html.index("<b>hi</b>")
        assert html.endswith("<script>gadgets.util.runOnLoadHandlers();</script></body>\n</html>")

    def test_quirks_view_has_no_doctype(self, renderer, gadget):
        html = renderer.render(gadget, GadgetContext(url=gadget.id.url, view="quirky"))
        assert html.startswith("<html>")

    def test_config_init_only_includes_used_features(self, renderer, gadget):
        html = renderer.render(gadget, GadgetContext(url=gadget.id.url))
        start = html.index("gadgets.config.init(") + len("gadgets.config.init(")
        config = json.loads(html[start:html.index(");\n", start)])
        assert config == {"rpc": {"relay": "/rpc_relay.html"}, "core.util": {"settitle": {}}}

    def test_forced_libs_served_externally_and_not_inlined(self, renderer, gadget):
        html = renderer.render(gadget, GadgetContext(url=gadget.id.url, forced_libs="rpc", container="shop"))

        version = renderer.js_version()
        assert f'<script src="/gadgets/js/rpc.js?v={version}&container=shop"></script>' in html
        assert "rpc();" not in html
        assert "core();" not in html
        assert "title();" in html

    def test_unknown_view_without_default(self, renderer, gadget):
        del gadget.views["default"]
        with pytest.raises(GadgetError):
            renderer.render(gadget, GadgetContext(url=gadget.id.url, view="missing"))

    def test_url_view_cannot_render_html(self, renderer, gadget):
        with pytest.raises(GadgetError):
            renderer.render(gadget, GadgetContext(url=gadget.id.url, view="canvas"))

    def test_unsigned_preloads_embedded(self, renderer, gadget, stub_fetcher):
        stub_fetcher.add("http://example.com/data", '{"a": 1}')
        gadget.preloads = [
            Preload(href="http://example.com/data"),
            Preload(href="http://example.com/secret", authz="signed"),
            Preload(href="http://example.com/canvas-only", views=["canvas"]),
        ]

        html = renderer.render(gadget, GadgetContext(url=gadget.id.url))

        assert 'gadgets.io.preloaded_ = {"http://example.com/data": {"body": "{\\"a\\": 1}", "rc": 200}};' in html
        assert [r.url for r in stub_fetcher.requests] == ["http://example.com/data"]


class TestRedirect:
    """Test url view redirects."""

    def test_redirect_url(self, renderer, gadget):
        location = renderer.redirect_url(gadget, GadgetContext(url=gadget.id.url, view="canvas"))
        version = renderer.js_version()
        assert location == f"http://example.com/canvas?x=1&up_name=Ada+Lovelace&libs=settitle.js?v={version}"

    def test_html_view_has_no_redirect(self, renderer, gadget):
        with pytest.raises(GadgetError):
            renderer.redirect_url(gadget, GadgetContext(url=gadget.id.url))


class TestJsVersion:
    """Test the JS version checksum."""

    def test_version_is_md5_of_all_features(self, registry, assembler):
        version = js_version(registry, assembler)
        assert len(version) == 32
        assert version == js_version(registry, assembler)

    def test_version_computed_once(self, renderer):
        with patch("gadget_container.gadgets.renderer.js_version", return_value="abc") as compute:
            assert renderer.js_version() == "abc"
            assert renderer.js_version() == "abc"
        assert compute.call_count == 1

    def test_js_url_defaults_to_core(self, renderer):
        assert renderer.js_url([]).startswith("core.js?v=")
        assert renderer.js_url(["core", "rpc"]).startswith("core:rpc.js?v=")

    def test_split_libs(self):
        assert split_libs("core:rpc::settitle") == ["core", "rpc", "settitle"]
        assert split_libs(None) == []
