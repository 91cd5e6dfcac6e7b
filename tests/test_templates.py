"""Tests for the Jinja2 template engine wrapper."""

import pytest

from schemaforge.codegen.core.templates import (
    TemplateEngine,
    TemplateError,
    create_template_engine,
)


@pytest.fixture
def engine(tmp_path):
    """Engine over a directory with a couple of templates."""
    (tmp_path / "greeting.txt.j2").write_text(
        "{% if formal %}\nDear {{ name }},\n{% endif %}\nHello {{ name }}\n", encoding="utf-8"
    )
    (tmp_path / "header.j2").write_text("{{ text | comment('#') }}\n", encoding="utf-8")
    (tmp_path / "markup.html").write_text("<b>{{ text }}</b>", encoding="utf-8")
    return TemplateEngine(tmp_path)


class TestTemplateEngine:
    """Tests for rendering."""

    def test_render_trims_blocks(self, engine) -> None:
        """Block tags do not leave blank lines behind."""
        assert engine.render_template("greeting.txt.j2", {"name": "Ada", "formal": True}) == (
            "Dear Ada,\nHello Ada\n"
        )
        assert engine.render_template("greeting.txt.j2", {"name": "Ada", "formal": False}) == (
            "Hello Ada\n"
        )

    def test_undefined_variable_fails(self, engine) -> None:
        """Missing context keys are errors, not empty strings."""
        with pytest.raises(TemplateError, match="greeting.txt.j2"):
            engine.render_template("greeting.txt.j2", {"formal": False})

    def test_missing_template(self, engine) -> None:
        """Unknown templates are reported as TemplateError."""
        with pytest.raises(TemplateError, match="nope.j2"):
            engine.render_template("nope.j2", {})
        assert engine.template_exists("greeting.txt.j2")
        assert not engine.template_exists("nope.j2")

    def test_comment_filter(self, engine) -> None:
        """The comment filter prefixes non-blank lines."""
        rendered = engine.render_template("header.j2", {"text": "one\n\ntwo"})
        assert rendered == "# one\n\n# two\n"

    def test_autoescape_only_for_markup(self, engine) -> None:
        """Code templates are never HTML-escaped."""
        assert engine.render_template("header.j2", {"text": "a < b"}) == "# a < b\n"
        assert engine.render_template("markup.html", {"text": "a < b"}) == "<b>a &lt; b</b>"

    def test_without_directory(self) -> None:
        """An engine without a directory knows no templates."""
        engine = TemplateEngine(None)
        assert not engine.template_exists("anything.j2")


class TestCreateTemplateEngine:
    """Tests for the shared engine cache."""

    def test_engines_are_shared_per_directory(self, tmp_path) -> None:
        """The same directory gives the same engine."""
        first = create_template_engine(tmp_path)
        assert create_template_engine(tmp_path) is first
        assert create_template_engine(tmp_path / "other") is not first
