"""Tests for root file discovery and glob exclusions."""

from pathlib import Path

from scad_flattener.utils.discovery import ExclusionFilter
from scad_flattener.utils.discovery import discover_sources


def test_directory_is_searched_recursively_in_sorted_order(write_scad, tmp_path):
    write_scad("b.scad", "")
    write_scad("a.scad", "")
    write_scad("parts/c.scad", "")
    write_scad("notes.txt", "")

    found = discover_sources([tmp_path])

    assert [p.relative_to(tmp_path.resolve()).as_posix() for p in found] == ["a.scad", "b.scad", "parts/c.scad"]


def test_explicit_files_are_kept_regardless_of_suffix(write_scad):
    notes = write_scad("model.txt", "")

    assert discover_sources([notes]) == [notes.resolve()]


def test_duplicates_are_removed(write_scad, tmp_path):
    a = write_scad("a.scad", "")

    found = discover_sources([a, tmp_path, a])

    assert found == [a.resolve()]


def test_missing_path_warns(tmp_path, caplog):
    with caplog.at_level("WARNING"):
        found = discover_sources([tmp_path / "nope"])

    assert found == []
    assert "does not exist" in caplog.text


def test_extensions_are_case_insensitive(write_scad, tmp_path):
    write_scad("UPPER.SCAD", "")
    write_scad("lib.inc", "")

    found = discover_sources([tmp_path], extensions=[".scad", ".inc"])

    assert sorted(p.name for p in found) == ["UPPER.SCAD", "lib.inc"]


class TestExclusionFilter:
    def test_pattern_matches_parent_directory(self, write_scad, tmp_path):
        write_scad("main.scad", "")
        write_scad("vendor/lib.scad", "")

        found = discover_sources([tmp_path], exclusions=ExclusionFilter(["*/vendor"]))

        assert [p.name for p in found] == ["main.scad"]

    def test_excluded_directories_are_skipped(self, write_scad, tmp_path):
        write_scad("main.scad", "")
        write_scad("flattened/main.scad", "")

        exclusions = ExclusionFilter([], excluded_dirs=[tmp_path / "flattened"])
        found = discover_sources([tmp_path], exclusions=exclusions)

        assert found == [(tmp_path / "main.scad").resolve()]

    def test_no_patterns_excludes_nothing(self, tmp_path):
        assert not ExclusionFilter([]).should_exclude(tmp_path / "a.scad")

    def test_file_name_pattern(self, tmp_path):
        exclusions = ExclusionFilter(["*/draft-*"])

        assert exclusions.should_exclude(tmp_path / "draft-box.scad")
        assert not exclusions.should_exclude(tmp_path / "box.scad")

    def test_home_expansion(self, isolated_env):
        exclusions = ExclusionFilter(["~/scratch/*"])

        assert exclusions.patterns == [f"{Path.home()}/scratch/*"]
        assert exclusions.should_exclude(Path.home() / "scratch" / "a.scad")
