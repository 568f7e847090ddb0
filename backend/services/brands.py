"""
Brand classification for fuel stations.

A station's brand is derived from its display name by case-insensitive
substring match against the configured brand list. When a name mentions
more than one brand, the earliest brand in the list wins.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from domain.models import BrandTag
from settings import settings

DEFAULT_BRANDS: Sequence[BrandTag] = tuple(BrandTag)


def parse_brand(value: str) -> BrandTag:
    """Coerce a brand string (any case) to a BrandTag, or raise ValueError."""
    needle = (value or "").strip().lower()
    for brand in BrandTag:
        if brand.value.lower() == needle:
            return brand
    raise ValueError(f"unknown brand: {value!r}")


def configured_brands(names: Optional[Iterable[str]] = None) -> List[BrandTag]:
    """Brand list from configuration, in configured order. Unknown names are skipped."""
    out: List[BrandTag] = []
    for name in names if names is not None else settings.FUEL_BRANDS:
        try:
            brand = parse_brand(name)
        except ValueError:
            continue
        if brand not in out:
            out.append(brand)
    return out


def classify(name: Optional[str], brands: Sequence[BrandTag] = DEFAULT_BRANDS) -> Optional[BrandTag]:
    if not name:
        return None
    upper = name.upper()
    for brand in brands:
        if brand.value.upper() in upper:
            return brand
    return None
