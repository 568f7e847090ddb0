import os
from typing import Dict, List, Tuple

# Basic settings helper to read environment configuration.


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        num = float(val)
    except ValueError:
        return default
    if num != num or num in (float("inf"), float("-inf")):
        return default
    return num


def _as_int(val: str | None, default: int) -> int:
    return int(_as_float(val, float(default)))


def _as_list(val: str | None, default: List[str]) -> List[str]:
    if val is None:
        return list(default)
    items = [v.strip() for v in val.split(",") if v.strip()]
    return items or list(default)


# (label shown in the UI, env suffix, default price in Ft/L)
FUEL_PRICE_DEFAULTS: Tuple[Tuple[str, str, float], ...] = (
    ("95-ös", "95", 593.0),
    ("Dízel", "DIESEL", 597.0),
    ("Keverék", "KEVEREK", 645.0),
    ("LPG", "LPG", 334.0),
    ("CNG", "CNG", 810.0),
)


class Settings:
    def __init__(self) -> None:
        self.FUEL_BRANDS: List[str] = _as_list(os.getenv("FUEL_BRANDS"), ["MOL", "Shell", "OMV", "Oplus"])
        self.FUEL_PRICES: Dict[str, float] = {
            label: _as_float(os.getenv(f"PRICE_{suffix}"), default)
            for label, suffix, default in FUEL_PRICE_DEFAULTS
        }

        self.DEFAULT_CENTER_LAT: float = _as_float(os.getenv("DEFAULT_CENTER_LAT"), 47.4979)
        self.DEFAULT_CENTER_LNG: float = _as_float(os.getenv("DEFAULT_CENTER_LNG"), 19.0402)
        self.DEFAULT_ZOOM: int = _as_int(os.getenv("DEFAULT_ZOOM"), 12)
        self.LOCATED_ZOOM: int = _as_int(os.getenv("LOCATED_ZOOM"), 13)
        self.GEOLOCATION_TIMEOUT_SEC: float = _as_float(os.getenv("GEOLOCATION_TIMEOUT_SEC"), 4.0)
        self.SEARCH_RADIUS_M: float = _as_float(os.getenv("SEARCH_RADIUS_M"), 7000.0)
        self.SEARCH_CATEGORY: str = os.getenv("SEARCH_CATEGORY", "gas_station")
        self.NEARBY_RADIUS_KM: float = _as_float(os.getenv("NEARBY_RADIUS_KM"), 5.0)
        self.VISIBLE_LIST_LIMIT: int = _as_int(os.getenv("VISIBLE_LIST_LIMIT"), 12)
        self.DEFAULT_PLACE_NAME: str = os.getenv("DEFAULT_PLACE_NAME", "Benzinkút")

        self.OVERPASS_URL: str = os.getenv("OVERPASS_URL", "https://overpass-api.de/api/interpreter")
        self.OSRM_BASE_URL: str = os.getenv("OSRM_BASE_URL", "https://router.project-osrm.org")
        self.IP_GEOLOCATION_URL: str = os.getenv("IP_GEOLOCATION_URL", "http://ip-api.com/json")
        self.IP_GEOLOCATION_ENABLED: bool = _as_bool(os.getenv("IP_GEOLOCATION_ENABLED"), False)
        self.HTTP_USER_AGENT: str = os.getenv("HTTP_USER_AGENT", "fuel-station-finder/0.1")
        self.HTTP_TIMEOUT_SEC: float = _as_float(os.getenv("HTTP_TIMEOUT_SEC"), 10.0)
        self.HTTP_MIN_INTERVAL_SEC: float = _as_float(os.getenv("HTTP_MIN_INTERVAL_SEC"), 0.0)

        self.SESSION_IDLE_TTL_SEC: float = _as_float(os.getenv("SESSION_IDLE_TTL_SEC"), 1800.0)
        self.SESSION_MAX_COUNT: int = _as_int(os.getenv("SESSION_MAX_COUNT"), 500)


settings = Settings()
