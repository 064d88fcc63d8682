"""
Unit Tests for InMemoryChannelSource

Filtering, ordering, windowing, relevance scoring and seed loading.
"""

import orjson
import pytest

from channel_cache.application.sources import (
    ChannelQuery,
    ChannelSource,
    InMemoryChannelSource,
    relevance_score,
)
from channel_cache.core.config.constants import RELEVANCE_SORT
from channel_cache.core.exceptions import ConfigurationError, InvalidArgumentError
from channel_cache.query import QueryFilter
from tests.test_fixtures import ChannelFactory


@pytest.mark.unit
class TestRelevanceScore:
    def test_weights(self):
        record = ChannelFactory.make("1", title="Tech Daily", tags=["technology"], description="tech news")

        assert relevance_score(record, "tech") == 6
        assert relevance_score(record, "daily") == 3
        assert relevance_score(record, "news") == 1

    def test_case_insensitive(self):
        assert relevance_score(ChannelFactory.make("1", title="PYTHON Tips"), "python") == 3

    def test_blank_text_scores_zero(self):
        assert relevance_score(ChannelFactory.make("1"), "  ") == 0


@pytest.mark.unit
class TestInMemoryChannelSource:
    def test_satisfies_protocol(self, channel_source):
        assert isinstance(channel_source, ChannelSource)

    @pytest.mark.asyncio
    async def test_window_and_total(self, channel_source):
        result = await channel_source.find_channels(ChannelQuery(filter=QueryFilter(), skip=1, limit=2))

        assert [r["id"] for r in result.items] == ["1", "4"]
        assert result.total == 5

    @pytest.mark.asyncio
    async def test_growth_breaks_subscriber_ties(self):
        source = InMemoryChannelSource([
            ChannelFactory.make("a", subscriberCount=10, growthRate7d=1.0),
            ChannelFactory.make("b", subscriberCount=10, growthRate7d=9.0),
        ])

        result = await source.find_channels(ChannelQuery(filter=QueryFilter()))

        assert [r["id"] for r in result.items] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_search_requires_text(self, channel_source):
        with pytest.raises(InvalidArgumentError):
            await channel_source.search_channels(ChannelQuery(filter=QueryFilter(), sort=RELEVANCE_SORT))

    @pytest.mark.asyncio
    async def test_find_channel_compares_ids_as_strings(self):
        source = InMemoryChannelSource([ChannelFactory.make(7)])

        assert (await source.find_channel("7"))["id"] == 7

    @pytest.mark.asyncio
    async def test_add(self):
        source = InMemoryChannelSource()
        assert len(source) == 0

        source.add(ChannelFactory.make("1"))

        assert len(source) == 1
        assert (await source.find_channel("1"))["metrics"]["subscriberCount"] == 1000


@pytest.mark.unit
class TestSeedFile:
    @pytest.mark.asyncio
    async def test_from_file(self, tmp_path):
        seed = tmp_path / "seed.json"
        seed.write_bytes(orjson.dumps(ChannelFactory.catalog()))

        source = InMemoryChannelSource.from_file(seed)

        assert len(source) == 6
        assert (await source.find_channel("2"))["title"] == "Crypto Signals"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            InMemoryChannelSource.from_file(tmp_path / "absent.json")

    def test_not_a_list(self, tmp_path):
        seed = tmp_path / "seed.json"
        seed.write_bytes(b'{"id": "1"}')

        with pytest.raises(ConfigurationError):
            InMemoryChannelSource.from_file(seed)
