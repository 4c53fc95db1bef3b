"""Tests for toggle-style selection registries."""

from tilevision.catalog import HALL_BEDROOM_TILES
from tilevision.session.selection import SelectionRegistry


def _tiles():
    return SelectionRegistry(key=lambda tile: tile.id)


class TestSelectionRegistry:
    def test_toggle_twice_restores(self):
        registry = _tiles()
        tile = HALL_BEDROOM_TILES[0]
        assert registry.toggle(tile) is True
        assert registry.is_selected(tile.id)
        assert registry.toggle(tile) is False
        assert not registry.is_selected(tile.id)
        assert len(registry) == 0

    def test_insertion_order(self):
        registry = _tiles()
        for tile in (HALL_BEDROOM_TILES[2], HALL_BEDROOM_TILES[0], HALL_BEDROOM_TILES[1]):
            registry.toggle(tile)
        assert registry.ids() == [
            HALL_BEDROOM_TILES[2].id,
            HALL_BEDROOM_TILES[0].id,
            HALL_BEDROOM_TILES[1].id,
        ]

    def test_items_are_catalog_references(self):
        registry = _tiles()
        tile = HALL_BEDROOM_TILES[3]
        registry.toggle(tile)
        assert registry.items()[0] is tile
        assert registry.get(tile.id) is tile
        assert registry.get("missing") is None

    def test_replace_and_clear(self):
        registry = SelectionRegistry(key=str)
        registry.replace(["Sofa", "Floor"])
        assert list(registry) == ["Sofa", "Floor"]
        registry.clear()
        assert registry.ids() == []
