"""Tests for structural edits on AppData."""

from __future__ import annotations

import pytest

from creatorpage.defaults import DEFAULT_DATA, default_app_data
from creatorpage.editing import (
    add_item,
    delete_item,
    renumber_ranks,
    update_item,
    update_record,
)
from creatorpage.models import AppData, CollectionKind, RankItem, RecordKind


@pytest.fixture
def seven_ranked() -> AppData:
    """Defaults with a seven-entry leaderboard."""
    items = [RankItem(id=f"p{i}", rank=i, name=f"Player{i}", points=100 - i) for i in range(1, 8)]
    return default_app_data().model_copy(update={"rank": items})


class TestRenumber:
    """Contiguous display order for leaderboards."""

    def test_delete_twice_leaves_contiguous_ranks(self, seven_ranked: AppData):
        """Deleting index 2 and then index 4 leaves ranks 1..5 in order."""
        data = delete_item(seven_ranked, CollectionKind.RANK, 2)
        data = delete_item(data, CollectionKind.RANK, 4)

        assert [item.rank for item in data.rank] == [1, 2, 3, 4, 5]
        assert [item.id for item in data.rank] == ["p1", "p2", "p4", "p5", "p7"]

    def test_points_are_not_touched(self, seven_ranked: AppData):
        """Renumbering changes display order only, never the score."""
        data = delete_item(seven_ranked, CollectionKind.RANK, 0)
        assert [item.points for item in data.rank] == [98, 97, 96, 95, 94, 93]

    def test_moderators_renumbered_too(self):
        data = delete_item(default_app_data(), CollectionKind.MODERATORS, 1)
        assert [item.rank for item in data.moderators] == [1, 2, 3]

    def test_renumber_ranks_copies(self):
        items = [RankItem(id="a", rank=5), RankItem(id="b", rank=9)]
        renumbered = renumber_ranks(items)
        assert [item.rank for item in renumbered] == [1, 2]
        assert items[0].rank == 5


class TestAddDelete:
    """Adding and deleting collection items."""

    @pytest.mark.parametrize("kind", list(CollectionKind))
    def test_add_appends_with_fresh_id(self, kind: CollectionKind):
        """New items get an id no other item in the collection has."""
        data = default_app_data()
        updated = add_item(data, kind)
        items = updated.collection(kind)

        assert len(items) == len(data.collection(kind)) + 1
        assert items[-1].id not in {item.id for item in data.collection(kind)}

    def test_add_ranked_item_gets_next_rank(self):
        data = add_item(default_app_data(), CollectionKind.RANK, name="Newcomer")
        assert data.rank[-1].rank == len(data.rank)
        assert data.rank[-1].name == "Newcomer"
        assert data.rank[-1].points == 0

    def test_add_gallery_item_has_source(self):
        data = add_item(default_app_data(), CollectionKind.GALLERY)
        assert data.gallery[-1].src.startswith("https://picsum.photos/400/300?random=")

    def test_add_rejects_invalid_fields(self):
        with pytest.raises(ValueError):
            add_item(default_app_data(), CollectionKind.RANK, points="many")

    def test_delete_out_of_range(self):
        with pytest.raises(IndexError):
            delete_item(default_app_data(), CollectionKind.GALLERY, 99)

    def test_schedule_delete_keeps_other_items(self):
        data = delete_item(default_app_data(), CollectionKind.SCHEDULE, 0)
        assert [item.id for item in data.schedule] == ["2", "3", "4", "5", "6", "7"]

    def test_input_is_not_mutated(self):
        """Edits return new snapshots and leave the old one intact."""
        data = default_app_data()
        delete_item(data, CollectionKind.RANK, 0)
        add_item(data, CollectionKind.SCHEDULE)
        assert data == DEFAULT_DATA


class TestUpdates:
    """Field edits on items and records."""

    def test_update_item_keeps_id_and_rank(self):
        data = update_item(
            default_app_data(), CollectionKind.RANK, 0, name="Renamed", id="hijack", rank=9, points="42"
        )
        entry = data.rank[0]
        assert entry.name == "Renamed"
        assert entry.id == "r1"
        assert entry.rank == 1
        assert entry.points == 42

    def test_update_item_out_of_range(self):
        with pytest.raises(IndexError):
            update_item(default_app_data(), CollectionKind.SCHEDULE, 7, day="Never")

    def test_update_record(self):
        data = update_record(default_app_data(), RecordKind.STATS, subscribers="13000")
        assert data.stats.subscribers == 13000
        assert data.stats.followers == DEFAULT_DATA.stats.followers

    def test_update_record_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown profile field"):
            update_record(default_app_data(), RecordKind.PROFILE, colour="red")

    def test_update_record_invalid_value(self):
        with pytest.raises(ValueError):
            update_record(default_app_data(), RecordKind.STATS, followers=-3)

    def test_update_item_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown rank item field"):
            update_item(default_app_data(), CollectionKind.RANK, 0, nonsense="x")

    def test_update_item_accepts_wire_name(self):
        data = update_item(default_app_data(), CollectionKind.RANK, 0, youtubeHandle="@renamed")
        assert data.rank[0].youtube_handle == "@renamed"

    def test_add_item_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown gallery item field"):
            add_item(default_app_data(), CollectionKind.GALLERY, url="x.png")
