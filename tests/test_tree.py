"""Tests for the in-memory namespace tree."""

import pytest

from filesystem.exceptions import EntryNotFoundError, InvalidPathError, TypeMismatchError
from filesystem.tree import Namespace, join_path, resolve_target, split_path
from filesystem.types import DirectoryEntry, FileEntry


def make_file(size=1, handle="h", comment=""):
    return FileEntry(size=size, created_at=1700000000000, piece_index_handle=handle, comment=comment)


@pytest.fixture
def tree():
    """Namespace holding /a/x, /a/y and /a/b/z."""
    namespace = Namespace()
    namespace.set_entry("/a/x", make_file(1, "hx"))
    namespace.set_entry("/a/y", make_file(2, "hy"))
    namespace.set_entry("/a/b/z", make_file(3, "hz"))
    return namespace


class TestPathHelpers:
    def test_split_path_ignores_empty_segments(self):
        assert split_path("/a//b/") == ["a", "b"]
        assert split_path("a/b") == ["a", "b"]
        assert split_path("/") == []
        assert split_path("") == []

    def test_join_path(self):
        assert join_path() == "/"
        assert join_path("a", "/b/") == "/a/b"

    def test_resolve_target_appends_basename_for_trailing_slash(self):
        assert resolve_target("/a/x", "/b/") == "/b/x"
        assert resolve_target("/a/dir/", "/b/") == "/b/dir"
        assert resolve_target("/a/x", "/b/y") == "/b/y"


class TestGetSet:
    def test_root_is_directory(self):
        assert isinstance(Namespace().get_entry("/"), DirectoryEntry)

    def test_set_creates_parents(self, tree):
        assert isinstance(tree.get_entry("/a"), DirectoryEntry)
        assert isinstance(tree.get_entry("/a/b"), DirectoryEntry)
        assert tree.get_entry("/a/b/z").size == 3

    def test_get_missing_raises(self, tree):
        with pytest.raises(EntryNotFoundError):
            tree.get_entry("/nope")

    def test_get_through_file_raises_not_found(self, tree):
        with pytest.raises(EntryNotFoundError):
            tree.get_entry("/a/x/child")

    def test_set_overwrites(self, tree):
        tree.set_entry("/a/x", make_file(9, "new"))
        assert tree.get_entry("/a/x").piece_index_handle == "new"

    def test_set_below_file_raises_type_mismatch(self, tree):
        with pytest.raises(TypeMismatchError):
            tree.set_entry("/a/x/child", make_file())

    def test_set_root_raises_invalid_path(self, tree):
        with pytest.raises(InvalidPathError):
            tree.set_entry("/", make_file())

    @pytest.mark.parametrize("path", ["/bad:name", "/line\nbreak", "/cr\rname"])
    def test_set_reserved_characters_raise(self, tree, path):
        with pytest.raises(InvalidPathError):
            tree.set_entry(path, make_file())

    def test_exists(self, tree):
        assert tree.exists("/a/b")
        assert tree.exists("/a/b/z")
        assert not tree.exists("/a/b/q")
        assert not tree.exists("/a/x/q")

    def test_check_insertable_does_not_mutate(self, tree):
        tree.check_insertable("/new/dir/file")
        assert not tree.exists("/new")

        with pytest.raises(TypeMismatchError):
            tree.check_insertable("/a/x/file")


class TestRemove:
    def test_rm_file(self, tree):
        removed = tree.rm("/a/x")
        assert removed.piece_index_handle == "hx"
        assert not tree.exists("/a/x")
        assert tree.exists("/a/y")

    def test_rm_directory_removes_subtree(self, tree):
        tree.rm("/a/b")
        assert not tree.exists("/a/b/z")
        assert tree.exists("/a")

    def test_rm_missing_target_raises(self, tree):
        with pytest.raises(EntryNotFoundError):
            tree.rm("/a/missing")

    def test_rm_missing_parent_raises(self, tree):
        with pytest.raises(EntryNotFoundError):
            tree.rm("/missing/child")

    def test_rm_root_raises(self, tree):
        with pytest.raises(InvalidPathError):
            tree.rm("/")


class TestMoveCopy:
    def test_mv_file(self, tree):
        assert tree.mv("/a/x", "/c/x2") == "/c/x2"
        assert not tree.exists("/a/x")
        assert tree.get_entry("/c/x2").piece_index_handle == "hx"

    def test_mv_into_directory_with_trailing_slash(self, tree):
        assert tree.mv("/a/x", "/a/b/") == "/a/b/x"
        assert tree.exists("/a/b/x")
        assert not tree.exists("/a/x")

    def test_mv_directory(self, tree):
        tree.mv("/a/b", "/moved")
        assert tree.exists("/moved/z")
        assert not tree.exists("/a/b")

    def test_mv_same_path_is_noop(self, tree):
        tree.mv("/a/x", "/a/x")
        assert tree.exists("/a/x")

    def test_mv_directory_into_itself_raises(self, tree):
        with pytest.raises(InvalidPathError):
            tree.mv("/a", "/a/b/inner")
        assert tree.exists("/a/b/z")

    def test_mv_missing_source_raises(self, tree):
        with pytest.raises(EntryNotFoundError):
            tree.mv("/nope", "/elsewhere")

    def test_mv_failure_restores_source(self, tree):
        with pytest.raises(TypeMismatchError):
            tree.mv("/a/y", "/a/x/y")
        assert tree.get_entry("/a/y").piece_index_handle == "hy"

    def test_cp_is_independent(self, tree):
        tree.cp("/a", "/copy")
        tree.get_entry("/copy/x").comment = "changed"
        tree.rm("/copy/b")

        assert tree.get_entry("/a/x").comment == ""
        assert tree.exists("/a/b/z")
        assert tree.exists("/copy/y")

    def test_cp_into_directory_with_trailing_slash(self, tree):
        assert tree.cp("/a/x", "/a/b/") == "/a/b/x"
        assert tree.exists("/a/x")
        assert tree.exists("/a/b/x")


class TestTraversal:
    def test_walk_yields_every_file(self, tree):
        paths = sorted(path for _, path in tree.walk("/"))
        assert paths == ["/a/b/z", "/a/x", "/a/y"]

    def test_walk_subdirectory(self, tree):
        assert [path for _, path in tree.walk("/a/b")] == ["/a/b/z"]

    def test_walk_file_yields_itself(self, tree):
        assert [path for _, path in tree.walk("/a/x")] == ["/a/x"]

    def test_walk_empty_tree(self):
        assert list(Namespace().walk("/")) == []

    def test_readdir_sorted(self, tree):
        names = [name for name, _ in tree.readdir("/a")]
        assert names == ["b", "x", "y"]

    def test_readdir_synthesizes_directory_entries(self, tree):
        kinds = {name: type(entry) for name, entry in tree.readdir("/a")}
        assert kinds == {"b": DirectoryEntry, "x": FileEntry, "y": FileEntry}

    def test_readdir_file_raises(self, tree):
        with pytest.raises(TypeMismatchError):
            tree.readdir("/a/x")

    def test_clear(self, tree):
        tree.clear()
        assert tree.readdir("/") == []
