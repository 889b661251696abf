"""Tests for header parsing and serialization."""

from textwrap import dedent

import pytest

from vaultgraph.frontmatter import Header, format_value, parse, render, serialize

SAMPLE = dedent("""\
    ---
    title: Epistemology
    type: knowledge-note
    created: 2024-01-02T10:00:00.000Z
    tags: ["philosophy", "knowledge", "philosophy"]
    # a comment that must survive
    reviewed: yes   # inline comment
    aliases:
      - episteme
      - 'theory of knowledge'
    ---
    # Epistemology

    The study of knowledge.
    """)


def test_parse_fields():
    header, body = parse(SAMPLE)
    assert header["title"] == "Epistemology"
    assert header["type"] == "knowledge-note"
    assert header["created"] == "2024-01-02T10:00:00.000Z"
    assert header["reviewed"] == "yes"
    assert header["aliases"] == ["episteme", "theory of knowledge"]
    assert body.startswith("# Epistemology\n")


def test_tags_keep_duplicates_and_order():
    header, _ = parse(SAMPLE)
    assert header["tags"] == ["philosophy", "knowledge", "philosophy"]


def test_field_order_preserved():
    header, _ = parse(SAMPLE)
    assert list(header) == ["title", "type", "created", "tags", "reviewed", "aliases"]


def test_unmodified_header_is_byte_identical():
    header, body = parse(SAMPLE)
    assert render(header, body) == SAMPLE


def test_round_trip_through_serialize():
    header, _ = parse(SAMPLE)
    reparsed, _ = parse(serialize(header))
    assert reparsed == header


def test_round_trip_plain_mapping():
    fields = {"title": "A [bracketed] title", "tags": ["a", 'say "hi"'], "note": " padded "}
    reparsed, body = parse(serialize(fields) + "body\n")
    assert reparsed == fields
    assert body == "body\n"


def test_crlf_header_preserved():
    text = "---\r\ntitle: Windows\r\ntags: [a]\r\n---\r\nbody\r\n"
    header, body = parse(text)
    assert header["title"] == "Windows"
    assert body == "body\r\n"
    header["status"] = "draft"
    assert render(header, body) == "---\r\ntitle: Windows\r\ntags: [a]\r\nstatus: draft\r\n---\r\nbody\r\n"


def test_no_header():
    header, body = parse("# Just a heading\n")
    assert len(header) == 0
    assert body == "# Just a heading\n"
    assert serialize(header) == ""


def test_unterminated_header_is_body():
    text = "---\ntitle: Oops\nno closing line\n"
    header, body = parse(text)
    assert dict(header) == {}
    assert body == text


def test_opening_delimiter_must_be_exact():
    text = "--- \ntitle: x\n---\nbody"
    header, body = parse(text)
    assert len(header) == 0
    assert body == text


def test_malformed_list_demoted_to_no_header():
    text = '---\ntags: ["unterminated]\n---\nbody\n'
    header, body = parse(text)
    assert len(header) == 0
    assert body == text


def test_duplicate_field_demoted_to_no_header():
    text = "---\ntitle: a\ntitle: b\n---\nbody\n"
    header, body = parse(text)
    assert len(header) == 0
    assert body == text


def test_empty_header_block_round_trips():
    text = "---\n---\nbody\n"
    header, body = parse(text)
    assert len(header) == 0
    assert render(header, body) == text


def test_closing_delimiter_at_end_of_file():
    text = "---\ntitle: Only header\n---"
    header, body = parse(text)
    assert header["title"] == "Only header"
    assert body == ""
    assert render(header, body) == text


def test_setting_field_only_rewrites_that_field():
    header, body = parse(SAMPLE)
    header["type"] = "reference"
    out = render(header, body)
    assert "type: reference\n" in out
    assert "reviewed: yes   # inline comment\n" in out
    assert "# a comment that must survive\n" in out
    assert out.endswith(body)


def test_setting_equal_value_keeps_raw_text():
    text = "---\ntags: [a,b]\n---\n"
    header, body = parse(text)
    header["tags"] = ["a", "b"]
    assert render(header, body) == text


def test_rename_keeps_position_and_formatting():
    text = "---\ntitle: T\nstatus:   draft\nend: x\n---\n"
    header, body = parse(text)
    header.rename("status", "state")
    assert render(header, body) == "---\ntitle: T\nstate:   draft\nend: x\n---\n"


def test_rename_to_existing_field_fails():
    header, _ = parse("---\na: 1\nb: 2\n---\n")
    with pytest.raises(ValueError):
        header.rename("a", "b")


def test_synthesized_header():
    header = Header()
    header["title"] = "New"
    assert render(header, "body\n") == "---\ntitle: New\n---\nbody\n"


def test_invalid_field_name_rejected():
    header = Header()
    with pytest.raises(ValueError):
        header["bad: key"] = "x"
    with pytest.raises(ValueError):
        header["multi"] = "line\nvalue"


def test_getitem_returns_copy_of_list():
    header, body = parse('---\ntags: ["a"]\n---\n')
    header["tags"].append("b")
    assert header["tags"] == ["a"]


def test_format_value():
    assert format_value(["a", "b"]) == '["a", "b"]'
    assert format_value("plain") == "plain"
    assert format_value("") == '""'
    assert format_value("[x]") == '"[x]"'
