"""Template rendering tests."""

import json

import pytest

from nodeflow.errors import TemplateCompileError
from nodeflow.templating import TemplateEngine


@pytest.fixture
def engine():
    return TemplateEngine()


def test_substitutes_variable(engine):
    assert engine.render("Hello {{name}}", {"name": "Sam"}) == "Hello Sam"


def test_whitespace_inside_tags_is_ignored(engine):
    assert engine.render("Hello {{ name }}!", {"name": "Sam"}) == "Hello Sam!"


def test_missing_variable_renders_empty(engine):
    assert engine.render("Hello {{name}}.", {}) == "Hello ."


def test_dotted_paths_and_list_indices(engine):
    context = {"summary": {"text": "short"}, "items": ["a", "b"]}
    assert engine.render("{{summary.text}} {{items.1}}", context) == "short b"
    assert engine.render("{{items.5}}{{summary.missing.deep}}", context) == ""


def test_triple_stash_is_plain_substitution(engine):
    assert engine.render("{{{html}}}", {"html": "<b>x</b>"}) == "<b>x</b>"


def test_no_html_escaping(engine):
    assert engine.render("{{html}}", {"html": "<b>&</b>"}) == "<b>&</b>"


def test_scalar_rendering(engine):
    context = {"n": 3, "ok": True, "nothing": None, "ratio": 0.5}
    assert engine.render("{{n}} {{ok}} [{{nothing}}] {{ratio}}", context) == "3 true [] 0.5"


def test_structures_render_as_compact_json(engine):
    assert engine.render("{{data}}", {"data": {"a": [1, 2]}}) == '{"a": [1, 2]}'


def test_json_helper_pretty_prints(engine):
    payload = {"user": {"name": "Sam", "tags": ["x"]}}
    rendered = engine.render("Data: {{json payload}}", {"payload": payload})
    assert rendered == "Data: " + json.dumps(payload, indent=2)


def test_json_helper_missing_value_is_empty(engine):
    assert engine.render("[{{json nope}}]", {}) == "[]"


def test_text_without_tags_is_unchanged(engine):
    assert engine.render("plain } text {", {}) == "plain } text {"


@pytest.mark.parametrize(
    "source",
    [
        "Hello {{name",
        "{{}}",
        "{{   }}",
        "{{#if name}}x{{/if}}",
        "{{upper name}}",
        "{{json a b}}",
        "{{na me!}}",
        "{{> partial}}",
    ],
)
def test_malformed_templates_raise(engine, source):
    with pytest.raises(TemplateCompileError):
        engine.render(source, {"name": "Sam"})


def test_template_compile_error_is_not_retriable():
    assert TemplateCompileError.retriable is False


def test_non_string_template_is_rejected(engine):
    with pytest.raises(TemplateCompileError):
        engine.compile(42)


def test_compiled_template_is_reusable(engine):
    template = engine.compile("Hi {{name}}")
    assert template.render({"name": "A"}) == "Hi A"
    assert template.render({"name": "B"}) == "Hi B"


def test_integral_floats_render_without_fraction(engine):
    context = {"whole": 1.0, "big": 3e6, "part": 2.5, "negative": -4.0}
    assert engine.render("{{whole}} {{big}} {{part}} {{negative}}", context) == "1 3000000 2.5 -4"


def test_comments_render_nothing(engine):
    assert engine.render("a{{! note }}b", {}) == "ab"
    assert engine.render("a{{!-- keep {{name}} }} out --}}b", {"name": "Sam"}) == "ab"
    assert engine.render("{{!}}{{name}}", {"name": "Sam"}) == "Sam"


@pytest.mark.parametrize("source", ["a {{! never closed", "{{!-- still open }}"])
def test_unclosed_comment_raises(engine, source):
    with pytest.raises(TemplateCompileError):
        engine.render(source, {})
