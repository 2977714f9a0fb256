"""Unit tests for the in-memory package query."""

from dotstrap.scanners.memory import InMemoryPackageQuery


class TestInMemoryPackageQuery:
    """Tests for InMemoryPackageQuery."""

    def test_case_insensitive_lookup(self) -> None:
        """Lookups ignore case, like winget's."""
        query = InMemoryPackageQuery({"Foo.Bar": "3.1"})
        assert query.installed_version("foo.bar") == "3.1"
        assert query.is_installed("FOO.BAR")
        assert not query.is_installed("Foo")

    def test_snapshot_is_token_searchable(self) -> None:
        """The snapshot works with the token matcher."""
        query = InMemoryPackageQuery({"Git.GitLFS": "3.5.1"})
        snapshot = query.snapshot()
        assert query.snapshot_contains(snapshot, "git.gitlfs")
        assert not query.snapshot_contains(snapshot, "Git.Git")

    def test_add_and_remove(self) -> None:
        """add replaces regardless of case; remove ignores unknown ids."""
        query = InMemoryPackageQuery({"foo.bar": "1"})
        query.add("Foo.Bar", "2")
        assert [(p.id, p.version) for p in query.scan()] == [("Foo.Bar", "2")]

        query.remove("nope")
        query.remove("FOO.BAR")
        assert list(query.scan()) == []
