"""Tests for tiered cache resolution."""

from unittest.mock import AsyncMock

import pytest

from crm_assistant.services.cache_resolver import TieredCacheResolver, pick_first_non_empty


def test_first_non_empty_candidate_wins() -> None:
    """The earliest candidate with items is returned, later ones are ignored."""
    hit = pick_first_non_empty(
        [
            ("k1", None),
            ("k2", {"produtos": ["A"]}),
            ("k3", {"produtos": ["B", "C"]}),
        ],
        "produtos",
    )

    assert hit is not None
    assert hit.key == "k2"
    assert hit.items == ["A"]


def test_empty_list_is_a_miss() -> None:
    """A key holding an empty list is skipped, not accepted as a hit."""
    hit = pick_first_non_empty(
        [
            ("produtos:list:all", []),
            ("produtos:list:1:50::", {"produtos": ["A", "B"]}),
        ],
        "produtos",
    )

    assert hit is not None
    assert hit.key == "produtos:list:1:50::"
    assert hit.items == ["A", "B"]


def test_wrapped_empty_list_is_a_miss() -> None:
    """A wrapped payload with an empty list is skipped too."""
    hit = pick_first_non_empty(
        [("k1", {"parceiros": []}), ("k2", {"parceiros": [{"CODPARC": 1}]})],
        "parceiros",
    )

    assert hit is not None
    assert hit.key == "k2"


def test_wrong_shape_is_a_miss() -> None:
    """Payloads without the expected list are misses."""
    hit = pick_first_non_empty(
        [
            ("k1", {"other": ["A"]}),
            ("k2", "a string"),
            ("k3", {"produtos": "not a list"}),
        ],
        "produtos",
    )

    assert hit is None


def test_no_candidates() -> None:
    """No candidates means no hit."""
    assert pick_first_non_empty([], "produtos") is None


class TestTieredCacheResolver:
    """Tests for TieredCacheResolver."""

    @pytest.fixture
    def mock_store(self):
        """Create a mock CacheStore."""
        store = AsyncMock()
        store.get_many = AsyncMock(return_value=[])
        return store

    @pytest.mark.asyncio
    async def test_resolve_scenario_products(self, mock_store):
        """An empty canonical key falls through to the paginated variant."""
        keys = ["produtos:list:all", "produtos:list:1:50::"]
        mock_store.get_many.return_value = [[], {"produtos": ["A", "B"]}]
        resolver = TieredCacheResolver(mock_store)

        hit = await resolver.resolve(keys, "produtos")

        assert hit is not None
        assert hit.items == ["A", "B"]
        mock_store.get_many.assert_awaited_once_with(keys)

    @pytest.mark.asyncio
    async def test_resolve_preserves_configured_order(self, mock_store):
        """Keys are read in exactly the configured order."""
        keys = ["c", "a", "b"]
        mock_store.get_many.return_value = [
            {"parceiros": ["from-c"]},
            {"parceiros": ["from-a"]},
            None,
        ]
        resolver = TieredCacheResolver(mock_store)

        hit = await resolver.resolve(keys, "parceiros")

        assert mock_store.get_many.await_args.args[0] == ["c", "a", "b"]
        assert hit is not None
        assert hit.key == "c"

    @pytest.mark.asyncio
    async def test_resolve_all_missing(self, mock_store):
        """Every candidate absent is a miss."""
        mock_store.get_many.return_value = [None, None]
        resolver = TieredCacheResolver(mock_store)

        assert await resolver.resolve(["a", "b"], "produtos") is None

    @pytest.mark.asyncio
    async def test_resolve_without_candidates(self, mock_store):
        """Datasets without cache keys never touch the store."""
        resolver = TieredCacheResolver(mock_store)

        assert await resolver.resolve([], "leads") is None
        mock_store.get_many.assert_not_awaited()
