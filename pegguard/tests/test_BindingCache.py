"""Unit tests for BindingCache."""

from pegguard.src.BindingCache import BindingCache


class TestBindingCache:
    """Test get-or-create semantics."""

    def test_creates_once(self) -> None:
        cache = BindingCache()
        created = []

        def factory(key):
            created.append(key)
            return object()

        first = cache.get_or_create("a", factory)
        second = cache.get_or_create("a", factory)

        assert first is second
        assert created == ["a"]

    def test_distinct_keys(self) -> None:
        cache = BindingCache()
        cache.get_or_create("a", lambda key: key.upper())
        cache.get_or_create("b", lambda key: key.upper())
        assert len(cache) == 2
        assert "a" in cache
        assert "c" not in cache
