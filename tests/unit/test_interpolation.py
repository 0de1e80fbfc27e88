"""Unit tests for placeholder interpolation."""

from promptbridge.core.interpolation import find_placeholders, interpolate, missing_variables


def test_replaces_placeholder():
    assert interpolate("Hello {{name}}!", {"name": "Ada"}) == "Hello Ada!"


def test_replaces_every_occurrence():
    assert interpolate("{{a}}{{a}}", {"a": "x"}) == "xx"


def test_missing_placeholder_is_left_intact():
    assert interpolate("{{missing}}", {}) == "{{missing}}"
    assert interpolate("{{a}} and {{b}}", {"a": "1"}) == "1 and {{b}}"


def test_keys_with_pattern_characters_match_literally():
    body = "{{a.b}} {{x+y}} {{$1}} {{(group)}} {{a*}}"
    variables = {"a.b": "dot", "x+y": "plus", "$1": "dollar", "(group)": "paren", "a*": "star"}

    assert interpolate(body, variables) == "dot plus dollar paren star"
    # "a.b" must not match "axb" as a pattern would
    assert interpolate("{{axb}}", {"a.b": "dot"}) == "{{axb}}"


def test_values_are_inserted_verbatim():
    assert interpolate("{{html}}", {"html": "<b>*bold*</b> \\1 $&"}) == "<b>*bold*</b> \\1 $&"


def test_inserted_values_are_not_rescanned():
    assert interpolate("{{a}}", {"a": "{{b}}", "b": "nope"}) == "{{b}}"


def test_extra_variables_are_ignored():
    assert interpolate("plain text", {"unused": "x"}) == "plain text"


def test_find_placeholders_in_order_without_duplicates():
    assert find_placeholders("{{b}} {{a}} {{b}}") == ["b", "a"]


def test_missing_variables():
    assert missing_variables("{{a}} {{b}} {{c}}", {"b": "2"}) == ["a", "c"]


def test_stray_braces_before_a_placeholder_do_not_hide_it():
    assert interpolate("Use {{ braces then {{name}}", {"name": "Ada"}) == "Use {{ braces then Ada"
    assert interpolate("{{#each}}\n{{name}}", {"name": "Ada"}) == "{{#each}}\nAda"


def test_placeholder_wrapped_in_extra_braces():
    assert interpolate("{{{name}}}", {"name": "Ada"}) == "{Ada}"


def test_overlapping_keys_match_whole_placeholders():
    assert interpolate("{{a}} {{ab}}", {"a": "1", "ab": "2"}) == "1 2"


def test_find_placeholders_ignores_stray_braces():
    assert find_placeholders("Use {{ braces then {{name}} and {{{team}}}") == ["name", "team"]
    assert missing_variables("Use {{ braces then {{name}}", {}) == ["name"]
