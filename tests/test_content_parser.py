"""Tests for the tag content parser."""

from __future__ import annotations

from chat_sessions.utils.content_parser import TagSegment, TextSegment, parse_content, parse_tag_params


class TestParseContent:
    """Splitting text into plain text and tag segments."""

    def test_text_tag_text(self):
        result = parse_content('a <x k="1">b</x> c')
        assert result.contents == [
            TextSegment(text="a "),
            TagSegment(name="x", content="b", params={"k": "1"}),
            TextSegment(text=" c"),
        ]

    def test_excluded_tag_is_kept_verbatim(self):
        result = parse_content('a <x k="1">b</x> c', tags=["y"])
        assert result.contents == [
            TextSegment(text="a "),
            TextSegment(text='<x k="1">b</x>'),
            TextSegment(text=" c"),
        ]

    def test_empty_allow_list_decodes_everything(self):
        result = parse_content("<x>b</x>", tags=[])
        assert result.contents == [TagSegment(name="x", content="b")]

    def test_plain_text_only(self):
        result = parse_content("no tags here")
        assert result.contents == [TextSegment(text="no tags here")]

    def test_empty_input(self):
        assert parse_content("").contents == []

    def test_unclosed_tag_runs_to_end_of_input(self):
        result = parse_content("hi <note>rest of\nthe text")
        assert result.contents == [
            TextSegment(text="hi "),
            TagSegment(name="note", content="rest of\nthe text"),
        ]

    def test_content_spans_lines(self):
        result = parse_content("<plan>\n1. a\n2. b\n</plan>")
        assert result.first("plan").content == "\n1. a\n2. b\n"

    def test_adjacent_tags(self):
        result = parse_content('<memory key="a">1</memory><memory key="b">2</memory>')
        assert [tag.params["key"] for tag in result.tags("memory")] == ["a", "b"]
        assert all(isinstance(segment, TagSegment) for segment in result.contents)

    def test_mixed_allow_list(self):
        result = parse_content("<keep>k</keep> and <drop>d</drop>", tags=["keep"])
        assert result.contents == [
            TagSegment(name="keep", content="k"),
            TextSegment(text=" and "),
            TextSegment(text="<drop>d</drop>"),
        ]

    def test_empty_tag_content(self):
        result = parse_content('<flag on="yes"></flag>')
        assert result.contents == [TagSegment(name="flag", content="", params={"on": "yes"})]

    def test_text_property_drops_decoded_tags(self):
        result = parse_content('Hello <memory key="name">Ada</memory>world', tags=["memory"])
        assert result.text == "Hello world"


class TestFirstTag:
    def test_returns_first_match(self):
        result = parse_content('<t n="1">a</t><t n="2">b</t>')
        assert result.first("t").params == {"n": "1"}

    def test_missing_tag_returns_none(self):
        assert parse_content("<a>x</a>").first("b") is None

    def test_filtered_tags_are_not_found(self):
        assert parse_content("<a>x</a>", tags=["b"]).first("a") is None


class TestTagParams:
    """Attribute parsing is best effort."""

    def test_multiple_attributes(self):
        assert parse_tag_params(' key="x" scope="user"') == {"key": "x", "scope": "user"}

    def test_empty_value(self):
        assert parse_tag_params(' key=""') == {"key": ""}

    def test_unparseable_attributes_yield_empty_mapping(self):
        result = parse_content("<x foo bar=baz>content</x>")
        assert result.contents == [TagSegment(name="x", content="content", params={})]

    def test_none(self):
        assert parse_tag_params(None) == {}
