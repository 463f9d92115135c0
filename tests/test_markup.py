from __future__ import annotations

import pytest

from xml_ai.markup import Element, Fragment, MarkupTextError, Text, flatten, parse_markup, text_content


def test_parse_markup_builds_nested_elements() -> None:
    fragment = parse_markup('<prompt name="q1"><msg role="user">Hi</msg></prompt>')

    (prompt,) = fragment.extract_elements()
    assert prompt.tag == "prompt"
    assert prompt.attributes == {"name": "q1"}
    (msg,) = prompt.child_elements()
    assert msg.attributes == {"role": "user"}
    assert list(msg.children) == [Text("Hi")]


def test_parse_markup_lowercases_tags_and_attributes() -> None:
    fragment = parse_markup('<PROMPT NAME="Mixed"><Msg Role="USER">x</Msg></PROMPT>')

    (prompt,) = fragment.extract_elements()
    assert prompt.matches("prompt")
    assert prompt.attributes == {"name": "Mixed"}
    assert prompt.child_elements()[0].attributes == {"role": "USER"}


def test_self_closing_and_void_tags_take_no_children() -> None:
    fragment = parse_markup('<set temperature="0.2"/><msg role="user">a<br>b</msg>')

    set_element, msg = fragment.extract_elements()
    assert set_element.tag == "set"
    assert len(set_element.children) == 0
    assert [type(node) for node in msg.children] == [Text, Element, Text]


def test_unclosed_tags_close_at_end_of_input_and_stray_end_tags_are_ignored() -> None:
    fragment = parse_markup('</nothing><prompt name="x"><msg role="user">hello')

    (prompt,) = fragment.extract_elements()
    (msg,) = prompt.child_elements()
    assert text_content(msg) == "hello"


def test_attributes_without_value_become_empty_strings() -> None:
    (element,) = parse_markup("<msg flag>x</msg>").extract_elements()
    assert element.attributes == {"flag": ""}


def test_character_references_are_decoded() -> None:
    (element,) = parse_markup("<msg>a &amp; b &lt;c&gt;</msg>").extract_elements()
    assert text_content(element) == "a & b <c>"


def test_fragment_flattening_and_strict_text() -> None:
    nested = Fragment((Text("a"), Fragment((Text("b"), Fragment((Text("c"),))))))

    assert nested.flatten() == [Text("a"), Text("b"), Text("c")]
    assert flatten(Text("z")) == [Text("z")]
    assert nested.extract_text_strict() == ["a", "b", "c"]

    mixed = Fragment((Text("a"), Element("b")))
    with pytest.raises(MarkupTextError):
        mixed.extract_text_strict()
    assert mixed.extract_elements() == [Element("b")]


def test_text_content_walks_all_descendants() -> None:
    tree = Element("p", children=Fragment((Text("one "), Element("b", children=Fragment((Text("two"),))), Text("!"))))
    assert text_content(tree) == "one two!"
    assert text_content(Fragment((tree, Text(" end")))) == "one two! end"


def test_comments_are_dropped_and_attributes_stay_plain_strings() -> None:
    (element,) = parse_markup('<!-- note --><msg class="a b" role="user">x<!-- inner -->y</msg>').extract_elements()

    assert element.attributes == {"class": "a b", "role": "user"}
    assert element.children.extract_text_strict() == ["x", "y"]
