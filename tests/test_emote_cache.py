"""Tests for the scoped emote/badge resolution caches."""

from __future__ import annotations

from src.emotes.cache import GLOBAL_SCOPE, BadgeCache, EmoteCache
from src.emotes.records import (
    INVALID_BADGE,
    INVALID_RECORD,
    BadgeRecord,
    EmoteRecord,
    Flavor,
)


def emote(emote_id: str, name: str, flavor: Flavor = Flavor.BTTV) -> EmoteRecord:
    return EmoteRecord(id=emote_id, name=name, url=f"https://cdn/{emote_id}", flavor=flavor)


class TestEmoteCacheLookups:
    def setup_method(self) -> None:
        self.cache = EmoteCache()

    def test_global_set_and_get(self) -> None:
        kappa = emote("25", "Kappa", Flavor.HELIX)
        self.cache.set(GLOBAL_SCOPE, "25", kappa)
        assert self.cache.has(GLOBAL_SCOPE, "25")
        assert self.cache.has_name(GLOBAL_SCOPE, "Kappa")
        assert self.cache.get(GLOBAL_SCOPE, "25") == kappa
        assert self.cache.get_by_name(GLOBAL_SCOPE, "Kappa") == kappa

    def test_miss_returns_invalid_sentinel(self) -> None:
        assert self.cache.get(GLOBAL_SCOPE, "nope") is INVALID_RECORD
        assert self.cache.get_by_name("forsen", "nope") is INVALID_RECORD
        assert INVALID_RECORD.id == "invalid"
        assert INVALID_RECORD.name == "invalid"
        assert INVALID_RECORD.url == ""

    def test_channel_lookup_falls_back_to_global(self) -> None:
        kappa = emote("25", "Kappa")
        self.cache.set(GLOBAL_SCOPE, "25", kappa)
        assert self.cache.get("forsen", "25") == kappa
        assert self.cache.get_by_name("forsen", "Kappa") == kappa

    def test_global_scope_never_consults_channels(self) -> None:
        self.cache.set("forsen", "x1", emote("x1", "forsenE"))
        assert self.cache.get(GLOBAL_SCOPE, "x1") is INVALID_RECORD
        assert self.cache.get_by_name(GLOBAL_SCOPE, "forsenE") is INVALID_RECORD

    def test_channel_shadows_global_name(self) -> None:
        global_kappa = emote("25", "Kappa", Flavor.HELIX)
        channel_kappa = emote("7tv-kappa", "Kappa", Flavor.SEVENTV)
        self.cache.set(GLOBAL_SCOPE, "25", global_kappa)
        self.cache.set("forsen", "7tv-kappa", channel_kappa)
        assert self.cache.get_by_name("forsen", "Kappa") == channel_kappa
        assert self.cache.get_by_name("xqc", "Kappa") == global_kappa
        assert self.cache.get_by_name(GLOBAL_SCOPE, "Kappa") == global_kappa

    def test_scoped_stores_are_isolated(self) -> None:
        self.cache.set("forsen", "a", emote("a", "forsenE"))
        assert self.cache.get("xqc", "a") is INVALID_RECORD
        assert not self.cache.has("xqc", "a")

    def test_scope_keys_are_sanitized(self) -> None:
        record = emote("a", "forsenE")
        self.cache.set("#Forsen", "a", record)
        assert self.cache.get("forsen", "a") == record
        assert self.cache.has_scope("#FORSEN")
        assert self.cache.scopes() == ["forsen"]

    def test_has_scope_only_after_write(self) -> None:
        assert not self.cache.has_scope("forsen")
        self.cache.get("forsen", "a")
        self.cache.has("forsen", "a")
        assert not self.cache.has_scope("forsen")
        self.cache.set("forsen", "a", emote("a", "x"))
        assert self.cache.has_scope("forsen")


class TestEmoteCacheWrites:
    def setup_method(self) -> None:
        self.cache = EmoteCache()

    def test_name_collision_last_write_wins(self) -> None:
        first = emote("bttv1", "catJAM")
        second = emote("7tv1", "catJAM", Flavor.SEVENTV)
        self.cache.set(GLOBAL_SCOPE, "bttv1", first)
        self.cache.set(GLOBAL_SCOPE, "7tv1", second)
        assert self.cache.get_by_name(GLOBAL_SCOPE, "catJAM") == second
        # The first record stays reachable by id.
        assert self.cache.get(GLOBAL_SCOPE, "bttv1") == first

    def test_rename_drops_stale_name(self) -> None:
        self.cache.set(GLOBAL_SCOPE, "1", emote("1", "OldName"))
        self.cache.set(GLOBAL_SCOPE, "1", emote("1", "NewName"))
        assert not self.cache.has_name(GLOBAL_SCOPE, "OldName")
        assert self.cache.get_by_name(GLOBAL_SCOPE, "NewName").id == "1"

    def test_rename_keeps_name_owned_by_other_id(self) -> None:
        self.cache.set(GLOBAL_SCOPE, "1", emote("1", "Shared"))
        self.cache.set(GLOBAL_SCOPE, "2", emote("2", "Shared"))
        self.cache.set(GLOBAL_SCOPE, "1", emote("1", "Other"))
        assert self.cache.get_by_name(GLOBAL_SCOPE, "Shared").id == "2"

    def test_every_name_resolves_to_a_stored_record(self) -> None:
        self.cache.set_many(
            "forsen",
            [emote("1", "a"), emote("2", "b"), emote("3", "a"), emote("1", "c")],
        )
        for name in self.cache.names("forsen"):
            record = self.cache.get_by_name("forsen", name)
            assert record.name == name
            assert self.cache.has("forsen", record.id)

    def test_set_many_counts_and_is_idempotent(self) -> None:
        batch = [emote("1", "a"), emote("2", "b")]
        assert self.cache.set_many(GLOBAL_SCOPE, batch) == 2
        assert self.cache.set_many(GLOBAL_SCOPE, batch) == 2
        assert self.cache.size(GLOBAL_SCOPE) == 2
        assert sorted(r.id for r in self.cache.records(GLOBAL_SCOPE)) == ["1", "2"]

    def test_records_of_unknown_scope_are_empty(self) -> None:
        assert self.cache.records("nobody") == []
        assert self.cache.size("nobody") == 0


class TestBadgeCache:
    def setup_method(self) -> None:
        self.cache = BadgeCache()
        for key in ("subscriber/0", "premium/1", "moderator/1"):
            self.cache.set(GLOBAL_SCOPE, key, BadgeRecord(id=key, name=key, url=f"https://b/{key}"))
        self.cache.set("forsen", "subscriber/12", BadgeRecord(id="subscriber/12", name="subscriber/12", url="https://b/sub12"))

    def test_miss_returns_badge_sentinel(self) -> None:
        assert self.cache.get(GLOBAL_SCOPE, "nope/1") is INVALID_BADGE

    def test_resolve_tag_uses_channel_then_global(self) -> None:
        records = self.cache.resolve_tag("forsen", "subscriber/12,premium/1")
        assert [r.id for r in records] == ["subscriber/12", "premium/1"]

    def test_resolve_tag_omits_unknown_badges(self) -> None:
        records = self.cache.resolve_tag("xqc", "subscriber/12,moderator/1,,bits/100")
        assert [r.id for r in records] == ["moderator/1"]

    def test_resolve_empty_tag(self) -> None:
        assert self.cache.resolve_tag("forsen", "") == []
        assert self.cache.resolve_tag("forsen", None) == []
