"""
Tests for catalog filtering and "now playing" enrichment.
"""
from datetime import datetime, timedelta, timezone

from iptv_addon.models.channel import Channel
from iptv_addon.models.epg import Programme
from iptv_addon.models.tenant import Tenant
from iptv_addon.services.catalog import CatalogResolver, category_catalog_id, find_now_playing

# Within "Morning News" in the sample guide
DURING_MORNING_NEWS = datetime(2025, 12, 12, 1, 30, tzinfo=timezone.utc)


def at(hour: int) -> datetime:
    return datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(hours=hour)


class TestCatalogResolver:

    def test_default_catalog_keeps_all_in_order(self, sample_tenant):
        metas = CatalogResolver().resolve(sample_tenant, "all")
        assert [m.name for m in metas] == ["News One", "Sport HD", "News Two", "Movies 24"]

    def test_category_catalog(self, sample_tenant):
        metas = CatalogResolver().resolve(sample_tenant, "category:News")
        assert [m.name for m in metas] == ["News One", "News Two"]
        assert all(m.genres == ["News"] for m in metas)

    def test_unknown_category_is_empty(self, sample_tenant):
        assert CatalogResolver().resolve(sample_tenant, "category:Cooking") == []

    def test_favorites_catalog(self, sample_tenant):
        resolver = CatalogResolver()
        assert resolver.resolve(sample_tenant, "favorites") == []

        sport_id = sample_tenant.channels[1].id
        sample_tenant.favorites.add(sport_id)
        metas = resolver.resolve(sample_tenant, "favorites")
        assert [m.id for m in metas] == [sport_id]

        sample_tenant.favorites.discard(sport_id)
        assert resolver.resolve(sample_tenant, "favorites") == []

    def test_language_filter(self, sample_tenant):
        sample_tenant.config.languages = ["English"]
        metas = CatalogResolver().resolve(sample_tenant, "all")
        assert [m.name for m in metas] == ["News One"]

    def test_language_filter_runs_before_catalog_kind(self, sample_tenant):
        sample_tenant.config.languages = ["Spanish"]
        assert CatalogResolver().resolve(sample_tenant, "category:News") == []

    def test_any_language_keeps_everything(self, sample_tenant):
        sample_tenant.config.languages = ["English", "any"]
        assert len(CatalogResolver().resolve(sample_tenant, "all")) == 4

    def test_search_and_skip(self, sample_tenant):
        resolver = CatalogResolver(page_size=1)

        metas = resolver.resolve(sample_tenant, "all", search="news")
        assert [m.name for m in metas] == ["News One"]

        metas = resolver.resolve(sample_tenant, "all", search="NEWS", skip=1)
        assert [m.name for m in metas] == ["News Two"]

    def test_category_and_favorites_are_not_paged(self, source_config):
        channels = [
            Channel(id=f"iptv_{i}", name=f"Ch {i}", group="News", url=f"http://example.com/{i}.m3u8")
            for i in range(150)
        ]
        tenant = Tenant(
            tenant_id="big",
            config=source_config,
            channels=channels,
            categories=["News"],
            favorites={ch.id for ch in channels},
        )
        resolver = CatalogResolver()

        assert len(resolver.resolve(tenant, "category:News")) == 150
        assert len(resolver.resolve(tenant, "favorites")) == 150
        assert len(resolver.resolve(tenant, "all")) == 100
        assert [m.name for m in resolver.resolve(tenant, "all", skip=100)] == [f"Ch {i}" for i in range(100, 150)]

    def test_slash_in_group_uses_encoded_catalog_id(self, source_config):
        tenant = Tenant(
            tenant_id="slash",
            config=source_config,
            channels=[
                Channel(id="iptv_a", name="Ch A", group="News", url="http://example.com/a.m3u8"),
                Channel(id="iptv_b", name="Local", group="News/Local", url="http://example.com/b.m3u8"),
            ],
            categories=["News", "News/Local"],
        )
        catalog_id = category_catalog_id("News/Local")

        assert catalog_id.startswith("category64:")
        assert "/" not in catalog_id
        assert category_catalog_id("News") == "category:News"
        assert [m.name for m in CatalogResolver().resolve(tenant, catalog_id)] == ["Local"]
        assert CatalogResolver().resolve(tenant, "category64:!!!") == []

    def test_now_playing_description(self, sample_tenant):
        metas = CatalogResolver().resolve(sample_tenant, "all", now=DURING_MORNING_NEWS)

        assert metas[0].description == "News One - News\nNow: Morning News\nDaily news broadcast"
        assert metas[1].description == "Sport HD - Sports\nNow: Live Match"
        # No guide entry
        assert metas[2].description == "News Two - News"

    def test_no_current_programme_leaves_description(self, sample_tenant):
        metas = CatalogResolver().resolve(sample_tenant, "all", now=at(12))
        assert metas[0].description == "News One - News"

    def test_meta_for_channel(self, sample_tenant):
        resolver = CatalogResolver()
        news = sample_tenant.channels[0]

        meta = resolver.meta(sample_tenant, news.id, now=DURING_MORNING_NEWS)
        response = meta.to_response()
        assert response["id"] == news.id
        assert response["type"] == "tv"
        assert response["posterShape"] == "square"
        assert response["poster"] == "http://example.com/news.png"
        assert "Now: Morning News" in response["description"]

        assert resolver.meta(sample_tenant, "iptv_missing") is None


class TestNowPlaying:

    def test_first_match_in_list_order(self):
        programmes = [
            Programme(start=at(10), stop=at(20), title="First"),
            Programme(start=at(15), stop=at(25), title="Second"),
        ]
        assert find_now_playing(programmes, at(17)).title == "First"

    def test_unsorted_list_is_scanned_as_is(self):
        programmes = [
            Programme(start=at(18), stop=at(22), title="Later"),
            Programme(start=at(10), stop=at(20), title="Earlier"),
        ]
        assert find_now_playing(programmes, at(19)).title == "Later"

    def test_stop_is_exclusive(self):
        programmes = [
            Programme(start=at(10), stop=at(12), title="Ended"),
            Programme(start=at(12), stop=at(14), title="Started"),
        ]
        assert find_now_playing(programmes, at(12)).title == "Started"
        assert find_now_playing(programmes, at(14)) is None
