"""Tests for section reconciliation and output rendering."""

from pathlib import Path

from scad_flattener.lib.flattening.models import Entry
from scad_flattener.lib.flattening.models import EntryKind
from scad_flattener.lib.flattening.serializer import GENERATED_MARKER
from scad_flattener.lib.flattening.serializer import Layout
from scad_flattener.lib.flattening.serializer import reconcile_sections
from scad_flattener.lib.flattening.serializer import render
from scad_flattener.lib.flattening.serializer import unresolved_directives

ROOT = Path("/proj/main.scad")
LIB = Path("/proj/lib.scad")


def make_entry(kind: EntryKind, content: str, source: Path = ROOT, line: int = 1, **fields) -> Entry:
    return Entry(kind=kind, content=content, source_file=source, source_name=source.name, line_number=line, **fields)


def section(name: str, body: str, source: Path = ROOT, line: int = 1) -> Entry:
    return make_entry(
        EntryKind.CUSTOMIZER_SECTION,
        f"/* [{name}] */\n{body}",
        source,
        line,
        value=name,
        section=name,
    )


class TestReconcileSections:
    def test_keeps_first_section_from_other_file(self):
        kept = reconcile_sections([section("A", "x = 1;"), section("A", "x = 2;", source=LIB)])

        assert len(kept) == 1
        assert kept[0].content == "/* [A] */\nx = 1;"

    def test_folds_repeated_section_from_same_file(self):
        kept = reconcile_sections([section("A", "x = 1;", line=1), section("A", "y = 2;", line=9)])

        assert len(kept) == 1
        assert kept[0].content == "/* [A] */\nx = 1;\ny = 2;"
        assert kept[0].line_number == 1

    def test_preserves_encounter_order(self):
        kept = reconcile_sections([section("B", "b = 1;"), section("A", "a = 1;")])

        assert [e.value for e in kept] == ["B", "A"]


def test_unresolved_directives_are_deduplicated_per_kind():
    entries = [
        make_entry(EntryKind.INCLUDE, "include <gone.scad>", value="gone.scad", resolved=False),
        make_entry(EntryKind.INCLUDE, "include <gone.scad>", source=LIB, value="gone.scad", resolved=False),
        make_entry(EntryKind.USE, "use <gone.scad>", value="gone.scad", resolved=False),
        make_entry(EntryKind.INCLUDE, "include <lib.scad>", value="lib.scad"),
    ]

    result = unresolved_directives(entries)

    assert [(e.kind, e.value) for e in result] == [
        (EntryKind.INCLUDE, "gone.scad"),
        (EntryKind.USE, "gone.scad"),
    ]


def test_grouped_render_exact_output():
    entries = [
        make_entry(EntryKind.COMMENT, "// Title"),
        section("Size", "w = 1;", line=2),
        make_entry(EntryKind.EMPTY, "", line=4),
        make_entry(EntryKind.COMMENT, "// the v", line=5),
        make_entry(EntryKind.VARIABLE, "v = 2;", line=6, value="2", doc="// the v"),
        make_entry(EntryKind.MODULE, "module m() {}", source=LIB, value="m"),
    ]

    text = render(entries, ROOT)

    assert text == (
        "// Title\n"
        "\n"
        f"{GENERATED_MARKER.format(root='main.scad')}\n"
        "\n"
        "// from main.scad\n"
        "/* [Size] */\n"
        "w = 1;\n"
        "\n"
        "/* [Hidden] */\n"
        "// from main.scad\n"
        "// the v\n"
        "v = 2;\n"
        "\n"
        "// from lib.scad\n"
        "module m() {}\n"
    )


def test_group_order_and_provenance_changes():
    entries = [
        make_entry(EntryKind.FUNCTION, "function f() = 1;", value="f"),
        make_entry(EntryKind.MODULE, "module a() {}", value="a"),
        make_entry(EntryKind.MODULE, "module b() {}", source=LIB, value="b"),
        make_entry(EntryKind.MODULE, "module c() {}", source=LIB, value="c"),
        make_entry(EntryKind.VARIABLE, "v = 1;", value="1"),
        section("S", "s = 1;"),
        make_entry(EntryKind.STATEMENT, "a();"),
    ]

    text = render(entries, ROOT)

    positions = [text.index(s) for s in ("/* [S] */", "v = 1;", "module a()", "function f()", "a();")]
    assert positions == sorted(positions)
    assert "// from lib.scad\nmodule b() {}\n\nmodule c() {}" in text
    assert text.count("// from lib.scad") == 1


def test_hidden_header_not_repeated_after_hidden_section():
    entries = [section("Hidden", "h = 1;"), make_entry(EntryKind.VARIABLE, "v = 1;", value="1")]

    text = render(entries, ROOT)

    assert text.count("/* [Hidden] */") == 1


def test_hidden_header_can_be_disabled():
    entries = [section("S", "s = 1;"), make_entry(EntryKind.VARIABLE, "v = 1;", value="1")]

    text = render(entries, ROOT, hide_free_variables=False)

    assert "[Hidden]" not in text


def test_free_comments_and_markers_are_not_emitted():
    entries = [
        make_entry(EntryKind.INCLUDE, "include <lib.scad>", value="lib.scad"),
        make_entry(EntryKind.COMMENT, "// begin content from lib.scad", synthetic=True),
        make_entry(EntryKind.COMMENT, "// stray note", source=LIB),
        make_entry(EntryKind.EMPTY, "", source=LIB),
        make_entry(EntryKind.COMMENT, "// end content from lib.scad", synthetic=True),
    ]

    text = render(entries, ROOT)

    assert text == f"{GENERATED_MARKER.format(root='main.scad')}\n"


def test_unresolved_directive_passthrough():
    entries = [make_entry(EntryKind.USE, "  use <MCAD/gears.scad>", value="MCAD/gears.scad", resolved=False)]

    text = render(entries, ROOT)

    assert "\nuse <MCAD/gears.scad>\n" in text


def test_inline_layout_keeps_encounter_order():
    entries = [
        make_entry(EntryKind.VARIABLE, "x = 1;", value="1"),
        make_entry(EntryKind.INCLUDE, "include <lib.scad>", line=2, value="lib.scad"),
        make_entry(EntryKind.COMMENT, "// begin content from lib.scad", line=2, synthetic=True),
        make_entry(EntryKind.VARIABLE, "z = 3;", source=LIB, value="3"),
        make_entry(EntryKind.COMMENT, "// end content from lib.scad", line=2, synthetic=True),
        make_entry(EntryKind.INCLUDE, "include <gone.scad>", line=3, value="gone.scad", resolved=False),
    ]

    text = render(entries, ROOT, Layout.INLINE)

    assert text == (
        f"{GENERATED_MARKER.format(root='main.scad')}\n"
        "x = 1;\n"
        "// begin content from lib.scad\n"
        "z = 3;\n"
        "// end content from lib.scad\n"
        "include <gone.scad>\n"
    )


def test_section_variables_render_under_their_section():
    entries = [
        section("Box", "width = 10;"),
        make_entry(EntryKind.VARIABLE, "height = 20;", line=4, value="20", section="Box"),
        make_entry(EntryKind.VARIABLE, "v = 1;", line=6, value="1"),
    ]

    text = render(entries, ROOT)

    assert text == (
        f"{GENERATED_MARKER.format(root='main.scad')}\n"
        "\n"
        "// from main.scad\n"
        "/* [Box] */\n"
        "width = 10;\n"
        "\n"
        "/* [Box] */\n"
        "// from main.scad\n"
        "height = 20;\n"
        "\n"
        "/* [Hidden] */\n"
        "// from main.scad\n"
        "v = 1;\n"
    )


def test_doc_comment_is_not_repeated_as_leading_comment():
    entries = [
        make_entry(EntryKind.COMMENT, "// Widget"),
        make_entry(EntryKind.MODULE, "module m() {}", line=2, value="m", doc="// Widget"),
    ]

    text = render(entries, ROOT)

    assert text == (
        f"{GENERATED_MARKER.format(root='main.scad')}\n"
        "\n"
        "// from main.scad\n"
        "// Widget\n"
        "module m() {}\n"
    )
