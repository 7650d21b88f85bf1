"""Tests for Substitutions and MessageBundle."""

import pytest

from gadget_container.exceptions import SpecParserError
from gadget_container.gadgets.message_bundle import MessageBundle
from gadget_container.gadgets.substitutions import Substitutions, SubstitutionType


class TestSubstitutions:
    """Test token substitution."""

    def test_nested_tokens_resolved_in_type_order(self):
        subst = Substitutions()
        subst.add_substitution(SubstitutionType.MESSAGE, "world", "foo __UP_planet____BIDI_START_EDGE__")
        subst.add_substitution(SubstitutionType.USER_PREF, "planet", "Earth")
        subst.add_substitution(SubstitutionType.BIDI, "START_EDGE", "right")
        subst.add_substitution(SubstitutionType.MODULE, "ID", "3")

        assert subst.substitute("Hello, __MSG_world__ __MODULE_ID__") == "Hello, foo Earthright 3"

    def test_unknown_tokens_left_alone(self):
        subst = Substitutions()
        subst.add_substitution(SubstitutionType.USER_PREF, "known", "yes")
        assert subst.substitute("__UP_known__ __UP_unknown__ __MSG_x__") == "yes __UP_unknown__ __MSG_x__"

    def test_single_type(self):
        subst = Substitutions()
        subst.add_substitution(SubstitutionType.MESSAGE, "a", "__UP_b__")
        subst.add_substitution(SubstitutionType.USER_PREF, "b", "B")
        assert subst.substitute_type(SubstitutionType.MESSAGE, "__MSG_a__") == "__UP_b__"

    def test_bidi_left_to_right(self):
        subst = Substitutions()
        subst.add_bidi(False)
        assert subst.substitute(
            "__BIDI_START_EDGE__ __BIDI_END_EDGE__ __BIDI_DIR__ __BIDI_REVERSE_DIR__"
        ) == "left right ltr rtl"

    def test_bidi_right_to_left(self):
        subst = Substitutions()
        subst.add_bidi(True)
        assert subst.substitute(
            "__BIDI_START_EDGE__ __BIDI_END_EDGE__ __BIDI_DIR__ __BIDI_REVERSE_DIR__"
        ) == "right left rtl ltr"

    def test_module_id(self):
        subst = Substitutions()
        subst.add_module_id(42)
        assert subst.substitute("frame-__MODULE_ID__") == "frame-42"
        assert subst.get(SubstitutionType.MODULE, "ID") == "42"

    def test_empty_text(self):
        assert Substitutions().substitute("") == ""

    def test_multiple_occurrences(self):
        subst = Substitutions()
        subst.add_substitution(SubstitutionType.USER_PREF, "c", "red")
        assert subst.substitute("__UP_c__/__UP_c__") == "red/red"


class TestMessageBundle:
    """Test message bundle parsing and merging."""

    def test_parse(self):
        bundle = MessageBundle.parse(
            '<?xml version="1.0" encoding="UTF-8"?>'
            "<messagebundle>"
            '  <msg name="hello">Hello</msg>'
            '  <msg name="rich"> Go <b>now</b> </msg>'
            "</messagebundle>"
        )
        assert bundle["hello"] == "Hello"
        assert bundle["rich"] == "Go now"
        assert len(bundle) == 2

    def test_parse_rejects_malformed_xml(self):
        with pytest.raises(SpecParserError):
            MessageBundle.parse("<messagebundle><msg name='a'>")

    def test_parse_rejects_unnamed_message(self):
        with pytest.raises(SpecParserError):
            MessageBundle.parse("<messagebundle><msg>text</msg></messagebundle>")

    def test_merge_specific_wins(self):
        specific = MessageBundle({"hello": "Hallo"})
        language = MessageBundle({"hello": "Hello DE", "bye": "Tschuess"})
        fallback = MessageBundle({"hello": "Hello", "bye": "Bye", "title": "Title"})

        merged = MessageBundle.merge(specific, language, fallback)

        assert merged.to_dict() == {"hello": "Hallo", "bye": "Tschuess", "title": "Title"}

    def test_merge_nothing(self):
        assert MessageBundle.merge({}).to_dict() == {}
