"""Tests for SourcesService."""

import json
import time
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from rss_tracker.sources.config import SourcesConfig
from rss_tracker.sources.schemas import Source, SourceUpdate
from rss_tracker.sources.service import SourcesService, group_by_category, load_seed_sources


@pytest.fixture
def config() -> SourcesConfig:
    return SourcesConfig(cache_ttl_seconds=60)


@pytest.fixture
def service(mock_database: AsyncMock, config: SourcesConfig) -> SourcesService:
    return SourcesService(mock_database, config)


class TestLoadSeedSources:
    def test_bundled_seed_file(self) -> None:
        sources = load_seed_sources()

        assert len(sources) > 50
        names = [s.name for s in sources]
        assert len(names) == len(set(names))
        assert all(s.url.startswith("http") for s in sources)
        assert all(s.color for s in sources)

    def test_custom_file(self, tmp_path: Path) -> None:
        seed = tmp_path / "seed.json"
        seed.write_text(json.dumps([
            {"name": "Example", "url": "https://example.com/rss", "category": "tech"},
        ]))

        [source] = load_seed_sources(seed)

        assert source.name == "Example"
        assert source.language == "en"
        assert source.enabled is True
        assert source.max_articles == 20


class TestGroupByCategory:
    def test_groups_in_order(self) -> None:
        sources = [
            Source(name="A", url="https://a", category="crypto"),
            Source(name="B", url="https://b", category="news"),
            Source(name="C", url="https://c", category="crypto"),
        ]
        grouped = group_by_category(sources)
        assert list(grouped.by_category) == ["crypto", "news"]
        assert [s.name for s in grouped.by_category["crypto"]] == ["A", "C"]


class TestListEnabled:
    @pytest.mark.asyncio
    async def test_fetches_from_db_on_first_call(
        self, service: SourcesService, sample_db_row: dict
    ) -> None:
        service.repository._db.fetch.return_value = [sample_db_row]

        result = await service.list_enabled()

        assert [s.name for s in result] == ["CoinDesk"]

    @pytest.mark.asyncio
    async def test_returns_cached_on_second_call(
        self, service: SourcesService, sample_db_row: dict
    ) -> None:
        service.repository._db.fetch.return_value = [sample_db_row]

        first = await service.list_enabled()
        # Change DB return, should NOT be used
        service.repository._db.fetch.return_value = []
        second = await service.list_enabled()

        assert first == second
        assert service.repository._db.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_refetches_after_ttl(
        self, service: SourcesService, sample_db_row: dict
    ) -> None:
        service.repository._db.fetch.return_value = [sample_db_row]
        await service.list_enabled()

        # Simulate TTL expiry
        service._enabled_cached_at = time.monotonic() - 120

        service.repository._db.fetch.return_value = [{**sample_db_row, "name": "Decrypt"}]
        result = await service.list_enabled()

        assert [s.name for s in result] == ["Decrypt"]

    @pytest.mark.asyncio
    async def test_grouped_by_category(
        self, service: SourcesService, sample_db_row: dict
    ) -> None:
        service.repository._db.fetch.return_value = [
            sample_db_row,
            {**sample_db_row, "name": "Le Monde", "category": "news"},
        ]

        grouped = await service.list_enabled_grouped_by_category()

        assert set(grouped.by_category) == {"crypto", "news"}
        assert len(grouped) == 2


class TestMutations:
    @pytest.mark.asyncio
    async def test_create_invalidates_cache(
        self, service: SourcesService, sample_db_row: dict
    ) -> None:
        service.repository._db.fetch.return_value = [sample_db_row]
        await service.list_enabled()
        service.repository._db.fetchval.return_value = "Decrypt"

        created = await service.create(Source(name="Decrypt", url="https://decrypt.co/feed",
                                              category="crypto"))

        assert created is True
        assert service._enabled_cache is None

    @pytest.mark.asyncio
    async def test_create_duplicate_returns_false(self, service: SourcesService) -> None:
        service.repository._db.fetchval.return_value = None

        created = await service.create(Source(name="CoinDesk", url="https://x", category="c"))

        assert created is False

    @pytest.mark.asyncio
    async def test_toggle_flips_enabled(
        self, service: SourcesService, sample_db_row: dict
    ) -> None:
        service.repository._db.fetchrow.side_effect = [
            sample_db_row,
            {**sample_db_row, "enabled": False},
        ]

        source = await service.toggle("CoinDesk")

        assert source is not None
        assert source.enabled is False
        update_call = service.repository._db.fetchrow.call_args_list[1]
        assert "enabled = $2" in update_call.args[0]
        assert update_call.args[1:] == ("CoinDesk", False)

    @pytest.mark.asyncio
    async def test_toggle_missing_source(self, service: SourcesService) -> None:
        service.repository._db.fetchrow.return_value = None
        assert await service.toggle("Nope") is None

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_columns(self, service: SourcesService) -> None:
        with pytest.raises(ValueError):
            await service.repository.update("CoinDesk", {"name": "Other"})

    @pytest.mark.asyncio
    async def test_update_fields(self, service: SourcesService, sample_db_row: dict) -> None:
        service.repository._db.fetchrow.return_value = {
            **sample_db_row, "url": "https://new.example/rss"
        }

        source = await service.update("CoinDesk", SourceUpdate(url="https://new.example/rss"))

        assert source.url == "https://new.example/rss"

    @pytest.mark.asyncio
    async def test_delete(self, service: SourcesService) -> None:
        service.repository._db.execute.return_value = "DELETE 1"
        assert await service.delete("CoinDesk") is True

        service.repository._db.execute.return_value = "DELETE 0"
        assert await service.delete("CoinDesk") is False


class TestSeedIfEmpty:
    @pytest.mark.asyncio
    async def test_seeds_when_empty(self, service: SourcesService) -> None:
        service.repository._db.fetchval.return_value = 0
        defaults = [
            Source(name="A", url="https://a", category="crypto"),
            Source(name="B", url="https://b", category="news"),
        ]

        count = await service.seed_if_empty(defaults)

        assert count == 2
        names_param = service.repository._db.execute.call_args.args[1]
        assert names_param == ["A", "B"]

    @pytest.mark.asyncio
    async def test_skips_when_populated(self, service: SourcesService) -> None:
        service.repository._db.fetchval.return_value = 12

        count = await service.seed_if_empty([Source(name="A", url="https://a", category="c")])

        assert count == 0
        service.repository._db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_ensure_seeded_respects_flag(self, mock_database: AsyncMock) -> None:
        service = SourcesService(mock_database, SourcesConfig(seed_on_init=False))

        await service.ensure_seeded()

        mock_database.fetchval.assert_not_called()
