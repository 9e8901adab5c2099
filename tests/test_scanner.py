"""Tests for TODO/FIXME comment scanning."""

import pytest

from techdebt_report.items import ItemType, Priority
from techdebt_report.scanner import CommentScanner, comment_description


class TestCommentDescription:
    @pytest.mark.parametrize(
        "line, expected",
        [
            ("// TODO: fix me", "TODO: fix me"),
            ("// FIXME", "FIXME"),
            ("    // TODO refactor this", "TODO: refactor this"),
            ("/* FIXME: leaks */", "FIXME: leaks"),
            ("/** TODO: document */", "TODO: document"),
            (" * TODO: Block comment TODO", "TODO: Block comment TODO"),
            ("//TODO:", "TODO"),
            ("# TODO: python too", "TODO: python too"),
        ],
    )
    def test_matches_comment_markers(self, line, expected):
        assert comment_description(line) == expected

    @pytest.mark.parametrize(
        "line",
        [
            "val todo = TODO()",
            "// TODOS are fine",
            "// Nothing to do here",
            'println("// TODO not a comment")',
            "",
        ],
    )
    def test_ignores_non_markers(self, line):
        assert comment_description(line) is None


class TestCommentScanner:
    def _source(self, directory, rel, text):
        path = directory / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def test_collects_todos_from_source_files(self, tmp_path):
        project = tmp_path / "project"
        path = self._source(
            project,
            "src/main/kotlin/com/example/MyClass.kt",
            "package com.example\n\n// TODO: My task\nclass MyClass\n",
        )

        items = CommentScanner({str(project): ":project"}).scan([path])

        assert len(items) == 1
        item = items[0]
        assert item.module_name == ":project"
        assert item.name == ""
        assert item.description == "TODO: My task"
        assert item.ticket == ""
        assert item.priority is Priority.UNSPECIFIED
        assert item.type is ItemType.COMMENT
        assert item.source_set == "src/main/kotlin/com/example/MyClass.kt:3"
        assert item.location == item.source_set

    def test_collects_block_comment_todos(self, tmp_path):
        project = tmp_path / "project"
        path = self._source(
            project,
            "MyClass.kt",
            "/**\n * TODO: Block comment TODO\n */\nclass MyClass\n",
        )

        items = CommentScanner({str(project): ":project"}).scan([path])

        assert [it.description for it in items] == ["TODO: Block comment TODO"]
        assert items[0].source_set == "MyClass.kt:2"

    def test_attributes_files_to_their_module(self, tmp_path):
        root = tmp_path / "root"
        app = self._source(root / "app", "App.kt", "// TODO: App task\n")
        lib = self._source(root / "lib", "Lib.kt", "// FIXME: Lib task\n")

        items = CommentScanner({str(root / "app"): ":app", str(root / "lib"): ":lib"}).scan([app, lib])

        assert {(it.module_name, it.description) for it in items} == {
            (":app", "TODO: App task"),
            (":lib", "FIXME: Lib task"),
        }

    def test_prefers_most_specific_project(self, tmp_path):
        root = tmp_path / "root"
        nested = self._source(root / "feature" / "login", "src/Login.kt", "// TODO\n")
        projects = {
            str(root): ":",
            str(root / "feature"): ":feature",
            str(root / "feature" / "login"): ":feature:login",
        }

        items = CommentScanner(projects).scan([nested])

        assert items[0].module_name == ":feature:login"
        assert items[0].source_set == "src/Login.kt:1"
        assert items[0].description == "TODO"

    def test_sibling_with_shared_prefix_is_not_an_ancestor(self, tmp_path):
        path = self._source(tmp_path / "app-extra", "A.kt", "// TODO: x\n")

        items = CommentScanner({str(tmp_path / "app"): ":app"}).scan([path])

        assert items == []

    def test_skips_files_without_module(self, tmp_path):
        path = self._source(tmp_path / "orphan", "A.kt", "// TODO: x\n")

        items = CommentScanner({str(tmp_path / "project"): ":project"}).scan([path])

        assert items == []

    def test_invalid_utf8_bytes_do_not_hide_other_markers(self, tmp_path, caplog):
        project = tmp_path / "project"
        project.mkdir()
        mixed = project / "Mixed.kt"
        mixed.write_bytes(b'// TODO: first\nval s = "caf\xe9"\n// FIXME: second\n')

        items = CommentScanner({str(project): ":project"}).scan([mixed])

        assert [it.description for it in items] == ["TODO: first", "FIXME: second"]
        assert [it.source_set for it in items] == ["Mixed.kt:1", "Mixed.kt:3"]
        assert "Could not read" not in caplog.text

    def test_unreadable_file_is_skipped(self, tmp_path):
        project = tmp_path / "project"
        good = self._source(project, "Good.kt", "// TODO: keep\n")
        unreadable = project / "Dir.kt"
        unreadable.mkdir()

        items = CommentScanner({str(project): ":project"}).scan([unreadable, good])

        assert [it.description for it in items] == ["TODO: keep"]

    def test_missing_file_is_skipped(self, tmp_path):
        project = tmp_path / "project"
        project.mkdir()

        items = CommentScanner({str(project): ":project"}).scan([project / "Gone.kt"])

        assert items == []
