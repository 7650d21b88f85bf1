"""Tests for SpecParser."""

import pytest

from gadget_container.exceptions import SpecParserError
from gadget_container.gadgets.spec import GadgetId
from gadget_container.gadgets.spec_parser import SpecParser

GADGET_ID = GadgetId("http://example.com/gadgets/hello.xml", 1)

FULL_SPEC = """<?xml version="1.0" encoding="UTF-8"?>
<Module>
  <ModulePrefs title="__MSG_title__" author="Jane" author_email="jane@example.com"
               description="Says hello" height="200">
    <Require feature="dynamic-height"/>
    <Require feature="views">
      <Param name="mode">compact</Param>
    </Require>
    <Optional feature="settitle"/>
    <Locale messages="messages/ALL_ALL.xml"/>
    <Locale lang="de" messages="messages/de_ALL.xml"/>
    <Locale lang="ar" language_direction="rtl"/>
    <Preload href="http://example.com/data?id=__MODULE_ID__"/>
    <Preload href="http://example.com/private" authz="SIGNED" views="canvas, profile"/>
  </ModulePrefs>
  <UserPref name="color" display_name="Color" datatype="enum" default_value="red">
    <EnumValue value="red" display_value="Red"/>
    <EnumValue value="blue"/>
  </UserPref>
  <UserPref name="name" required="true"/>
  <Content type="html" view="default, home"><![CDATA[<div>Hello __UP_name__</div>]]></Content>
  <Content type="html" view="home"><![CDATA[<p>more</p>]]></Content>
  <Content type="url" view="canvas" href="http://example.com/canvas"/>
</Module>
"""


@pytest.fixture
def parser():
    return SpecParser()


class TestSpecParser:
    """Test gadget spec parsing."""

    def test_module_prefs(self, parser):
        gadget = parser.parse(FULL_SPEC, GADGET_ID)
        assert gadget.id == GADGET_ID
        assert gadget.title == "__MSG_title__"
        assert gadget.author == "Jane"
        assert gadget.author_email == "jane@example.com"
        assert gadget.height == 200

    def test_requires(self, parser):
        gadget = parser.parse(FULL_SPEC, GADGET_ID)
        assert list(gadget.requires) == ["dynamic-height", "views", "settitle"]
        assert gadget.requires["views"].params == {"mode": "compact"}
        assert gadget.required_features() == ["dynamic-height", "views"]
        assert gadget.optional_features() == ["settitle"]

    def test_locales(self, parser):
        gadget = parser.parse(FULL_SPEC, GADGET_ID)
        assert gadget.locale_spec("all", "all").messages_url == "messages/ALL_ALL.xml"
        assert gadget.locale_spec("DE", "ALL").messages_url == "messages/de_ALL.xml"
        assert gadget.locale_spec("ar", "all").right_to_left
        assert gadget.locale_spec("fr", "all") is None

    def test_preloads(self, parser):
        gadget = parser.parse(FULL_SPEC, GADGET_ID)
        first, second = gadget.preloads
        assert first.authz == "none"
        assert first.applies_to("default")
        assert second.authz == "signed"
        assert second.views == ["canvas", "profile"]
        assert not second.applies_to("default")

    def test_user_prefs(self, parser):
        gadget = parser.parse(FULL_SPEC, GADGET_ID)
        color, name = gadget.user_prefs
        assert color.datatype == "enum"
        assert color.default_value == "red"
        assert color.enum_values == {"red": "Red", "blue": "blue"}
        assert name.required
        assert name.display_name == "name"

    def test_views(self, parser):
        gadget = parser.parse(FULL_SPEC, GADGET_ID)
        assert gadget.views["default"].content == "<div>Hello __UP_name__</div>"
        assert gadget.views["home"].content == "<div>Hello __UP_name__</div><p>more</p>"
        assert gadget.views["canvas"].is_url
        assert gadget.views["canvas"].href == "http://example.com/canvas"
        assert gadget.views["default"].quirks

    def test_unknown_view_falls_back_to_default(self, parser):
        gadget = parser.parse(FULL_SPEC, GADGET_ID)
        assert gadget.get_view("profile").name == "default"

    def test_content_without_view_is_default(self, parser):
        gadget = parser.parse(
            '<Module><ModulePrefs title="t"/><Content quirks="false">hi</Content></Module>', GADGET_ID
        )
        assert gadget.views["default"].content == "hi"
        assert not gadget.views["default"].quirks

    @pytest.mark.parametrize("xml", [
        "<Module><ModulePrefs title='t'>",
        "<Gadget><ModulePrefs title='t'/><Content>x</Content></Gadget>",
        "<Module><Content>x</Content></Module>",
        "<Module><ModulePrefs title='t'/><ModulePrefs title='u'/><Content>x</Content></Module>",
        "<Module><ModulePrefs/><Content>x</Content></Module>",
        "<Module><ModulePrefs title='t'><Require/></ModulePrefs><Content>x</Content></Module>",
        "<Module><ModulePrefs title='t'/><UserPref/><Content>x</Content></Module>",
        "<Module><ModulePrefs title='t'/><Content type='url'/></Module>",
        "<Module><ModulePrefs title='t'/><Content type='flash'>x</Content></Module>",
        "<Module><ModulePrefs title='t'/></Module>",
    ])
    def test_malformed_specs(self, parser, xml):
        with pytest.raises(SpecParserError):
            parser.parse(xml, GADGET_ID)
