"""
Brand filter over the ranked place list.
"""
from __future__ import annotations

from typing import FrozenSet, Iterable, List, Union

from domain.models import BrandTag, RankedPlace
from services.brands import parse_brand


def _coerce(tag: Union[BrandTag, str]) -> BrandTag:
    if isinstance(tag, BrandTag):
        return tag
    return parse_brand(tag)


class FilterEngine:
    """
    Holds the selected brand tags.

    An empty selection means no filtering. When any brand is selected,
    unbranded places are hidden.
    """

    def __init__(self) -> None:
        self._selection: FrozenSet[BrandTag] = frozenset()

    @property
    def selection(self) -> FrozenSet[BrandTag]:
        return self._selection

    def set_selection(self, tags: Iterable[Union[BrandTag, str]]) -> None:
        self._selection = frozenset(_coerce(t) for t in tags)

    def toggle(self, tag: Union[BrandTag, str]) -> None:
        brand = _coerce(tag)
        if brand in self._selection:
            self._selection = self._selection - {brand}
        else:
            self._selection = self._selection | {brand}

    def clear(self) -> None:
        self._selection = frozenset()

    def visible(self, ranked: List[RankedPlace]) -> List[RankedPlace]:
        if not self._selection:
            return list(ranked)
        return [r for r in ranked if r.brand is not None and r.brand in self._selection]
