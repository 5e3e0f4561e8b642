"""Tests for route template compilation and matching."""
import pytest

from sluice.exceptions import ConfigurationError
from sluice.routing import compile_pattern, split_path


class TestSplitPath:
    def test_root(self):
        assert split_path("/") == []
        assert split_path("") == []

    def test_strips_surrounding_slashes(self):
        assert split_path("/a/b/") == ["a", "b"]


class TestCompile:
    def test_literal_segments(self):
        p = compile_pattern("/books/list")
        assert p.names == ()
        assert [s.value for s in p.segments] == ["books", "list"]
        assert not any(s.is_capture for s in p.segments)

    def test_capture_names_in_order(self):
        p = compile_pattern("/authors/:author/books/:title")
        assert p.names == ("author", "title")

    def test_root_template(self):
        p = compile_pattern("/")
        assert p.segments == ()
        assert p.match("/") == ()
        assert p.match("/x") is None

    def test_trailing_slash_ignored(self):
        assert compile_pattern("/a/b/").match("/a/b") == ()

    def test_empty_template_rejected(self):
        with pytest.raises(ConfigurationError):
            compile_pattern("")

    def test_unnamed_capture_rejected(self):
        with pytest.raises(ConfigurationError):
            compile_pattern("/books/:")

    def test_duplicate_capture_rejected(self):
        with pytest.raises(ConfigurationError, match="twice"):
            compile_pattern("/:id/x/:id")

    def test_empty_segment_rejected(self):
        with pytest.raises(ConfigurationError):
            compile_pattern("/a//b")


class TestMatch:
    def test_captures_values(self):
        p = compile_pattern("/authors/:author/books/:title")
        assert p.match("/authors/noodlehaus/books/dispatch") == (
            "noodlehaus", "dispatch"
        )

    def test_literal_mismatch(self):
        p = compile_pattern("/authors/:author")
        assert p.match("/writers/noodlehaus") is None

    def test_segment_count_must_agree(self):
        p = compile_pattern("/books/:id")
        assert p.match("/books") is None
        assert p.match("/books/1/2") is None

    def test_capture_is_single_segment(self):
        p = compile_pattern("/files/:name")
        assert p.match("/files/a/b") is None

    def test_empty_capture_does_not_match(self):
        p = compile_pattern("/a/:x/b")
        assert p.match("/a//b") is None
