"""Tests for error message formatting and Rich markup escaping."""

from __future__ import annotations

from io import StringIO

from rich.console import Console

from scad_flattener.lib.flattening.models import Diagnostic
from scad_flattener.lib.flattening.models import DiagnosticKind
from scad_flattener.utils.error_format import escape_markup
from scad_flattener.utils.error_format import format_diagnostic
from scad_flattener.utils.error_format import format_error_message


class TestFormatErrorMessage:
    def test_includes_type_name(self):
        assert format_error_message(ValueError("invalid input")) == "ValueError: invalid input"

    def test_without_type(self):
        assert format_error_message(ValueError("invalid input"), include_type=False) == "invalid input"

    def test_type_not_repeated(self):
        assert format_error_message(RuntimeError("RuntimeError: boom")) == "RuntimeError: boom"

    def test_empty_message_uses_friendly_text(self):
        assert format_error_message(PermissionError()) == "PermissionError: Permission denied."

    def test_subclass_uses_friendly_text(self):
        class CustomNotFound(FileNotFoundError):
            pass

        assert format_error_message(CustomNotFound()) == "CustomNotFound: File not found."

    def test_unknown_empty_exception(self):
        assert format_error_message(ValueError()) == "ValueError: (no additional details)"


class TestEscapeMarkup:
    def test_customizer_label_survives(self):
        """A section label like [Size] would be eaten as a style tag."""
        buf = StringIO()
        c = Console(file=buf, force_terminal=False, no_color=True, width=200)
        c.print(f"[dim]{escape_markup('Dropped duplicate customizer section [Size]')}[/dim]")
        assert "[Size]" in buf.getvalue()

    def test_path_with_closing_tag_pattern(self):
        buf = StringIO()
        c = Console(file=buf, force_terminal=False, no_color=True, width=200)
        c.print(f"[red]Error:[/red] {escape_markup('[/home/user/model.scad]')}")
        assert "[/home/user/model.scad]" in buf.getvalue()

    def test_preserves_plain_text(self):
        assert escape_markup("Reference not found") == "Reference not found"

    def test_handles_non_string_input(self):
        assert escape_markup(ValueError("boom")) == "boom"
        assert escape_markup(42) == "42"
        assert escape_markup(None) == "None"

    def test_empty_string(self):
        assert escape_markup("") == ""


def test_format_diagnostic_uses_readable_kind():
    diagnostic = Diagnostic(kind=DiagnosticKind.UNRESOLVED_REFERENCE, message="Cannot resolve include <gone.scad>")

    assert format_diagnostic(diagnostic) == "unresolved reference: Cannot resolve include <gone.scad>"
