import pytest

from domain.models import BrandTag, Place
from services.filter_engine import FilterEngine
from services.place_catalog import PlaceCatalog

from fakes import HOME, north_of, place, ranked


def _catalog():
    catalog = PlaceCatalog()
    catalog.replace(
        [
            place("far", "OMV far", north_of(HOME, 0.03), BrandTag.OMV),
            place("near", "MOL near", north_of(HOME, 0.01), BrandTag.MOL),
            Place(id="nowhere", name="Shell ghost", location=None, brand=BrandTag.SHELL),
            place("mid", "Family Market", north_of(HOME, 0.02)),
        ]
    )
    return catalog


def test_with_distances_sorts_by_distance_and_drops_unlocated():
    out = _catalog().with_distances(HOME)
    assert [r.id for r in out] == ["near", "mid", "far"]
    assert [r.distance_km for r in out] == [1.1, 2.2, 3.3]


def test_without_origin_keeps_provider_order_and_no_distances():
    out = _catalog().with_distances(None)
    assert [r.id for r in out] == ["far", "near", "mid"]
    assert all(r.distance_km is None for r in out)


def test_replace_discards_previous_catalog():
    catalog = _catalog()
    catalog.replace([place("only", "OMV only", north_of(HOME, 0.05), BrandTag.OMV)])
    assert len(catalog) == 1
    assert [r.id for r in catalog.with_distances(HOME)] == ["only"]


def test_empty_selection_shows_everything():
    engine = FilterEngine()
    ranked_list = _catalog().with_distances(HOME)
    assert engine.visible(ranked_list) == ranked_list


@pytest.mark.parametrize(
    "selection",
    [{BrandTag.MOL}, {BrandTag.OMV, BrandTag.SHELL}, {BrandTag.OPLUS}, set(BrandTag)],
)
def test_filtered_view_is_subset_with_selected_brands_only(selection):
    engine = FilterEngine()
    engine.set_selection(selection)
    ranked_list = _catalog().with_distances(HOME)
    out = engine.visible(ranked_list)
    assert all(r in ranked_list for r in out)
    assert all(r.brand in selection for r in out)


def test_unbranded_place_hidden_whenever_any_filter_is_active():
    engine = FilterEngine()
    engine.set_selection(["MOL"])
    entries = [ranked("fm", "Family Market", 0.4), ranked("m", "MOL", 1.2, BrandTag.MOL)]
    assert [r.id for r in engine.visible(entries)] == ["m"]


def test_filter_preserves_input_order():
    engine = FilterEngine()
    engine.set_selection([BrandTag.MOL, BrandTag.OMV])
    out = engine.visible(_catalog().with_distances(HOME))
    assert [r.id for r in out] == ["near", "far"]


def test_toggle_and_clear():
    engine = FilterEngine()
    engine.toggle("OMV")
    engine.toggle(BrandTag.MOL)
    assert engine.selection == {BrandTag.OMV, BrandTag.MOL}
    engine.toggle("omv")
    assert engine.selection == {BrandTag.MOL}
    engine.clear()
    assert engine.selection == frozenset()


def test_unknown_brand_leaves_selection_unchanged():
    engine = FilterEngine()
    engine.set_selection(["MOL"])
    with pytest.raises(ValueError):
        engine.set_selection(["MOL", "Lukoil"])
    assert engine.selection == {BrandTag.MOL}
