from __future__ import annotations

import pytest

from conftest import make_article
from realtime_news.store import SectionStore

A = make_article(title="a", link="http://x.com/a", section="pib")
B = make_article(title="b", link="http://x.com/b", section="pib")
C = make_article(title="c", link="http://x.com/c", section="editorial")


class TestSectionStore:
    def test_empty(self) -> None:
        store = SectionStore()
        assert store.get("pib") == ()
        assert store.version("pib") == 0
        assert dict(store.snapshot()) == {}

    def test_replace_section(self) -> None:
        store = SectionStore()
        assert store.replace_section("pib", [A], version=1)
        assert store.get("pib") == (A,)
        assert store.version("pib") == 1

    def test_stale_section_write_is_discarded(self) -> None:
        store = SectionStore()
        store.replace_section("pib", [B], version=5)
        assert not store.replace_section("pib", [A], version=3)
        assert store.get("pib") == (B,)

    def test_snapshot_is_not_mutated_by_later_writes(self) -> None:
        store = SectionStore()
        store.replace_section("pib", [A], version=1)
        before = store.snapshot()
        store.replace_section("pib", [B], version=2)
        assert before["pib"] == (A,)
        assert store.snapshot()["pib"] == (B,)

    def test_snapshot_is_read_only(self) -> None:
        store = SectionStore()
        with pytest.raises(TypeError):
            store.snapshot()["pib"] = (A,)  # type: ignore[index]

    def test_replace_all_swaps_everything(self) -> None:
        store = SectionStore()
        store.replace_section("old", [A], version=1)
        written = store.replace_all({"pib": [B], "editorial": [C]}, version=2)
        assert written == {"pib", "editorial"}
        assert dict(store.snapshot()) == {"pib": (B,), "editorial": (C,)}

    def test_replace_all_keeps_newer_slices(self) -> None:
        store = SectionStore()
        store.replace_section("pib", [A], version=7)
        written = store.replace_all({"pib": [B], "editorial": [C]}, version=6)
        assert written == {"editorial"}
        assert store.get("pib") == (A,)
        assert store.version("pib") == 7
        assert store.get("editorial") == (C,)

    def test_replace_all_preserves_newer_section_it_does_not_mention(self) -> None:
        store = SectionStore()
        store.replace_section("extra", [A], version=9)
        store.replace_all({"pib": [B]}, version=4)
        assert store.get("extra") == (A,)
        assert store.get("pib") == (B,)

    def test_replace_all_keeps_listed_sections(self) -> None:
        store = SectionStore()
        store.replace_section("pib", [A], version=1)
        store.replace_section("gone", [C], version=1)
        written = store.replace_all({"editorial": [B]}, version=2, keep={"pib"})
        assert written == {"editorial"}
        assert store.get("pib") == (A,)
        assert store.version("pib") == 1
        assert "gone" not in store.snapshot()
