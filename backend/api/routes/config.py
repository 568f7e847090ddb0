"""
Static configuration exposed to the UI: brand chips and fuel prices.
"""
from typing import List

from fastapi import APIRouter
from pydantic import BaseModel

from services.brands import configured_brands
from settings import settings

router = APIRouter()


class FuelPriceResponse(BaseModel):
    label: str
    price: float
    unit: str = "Ft/L"


@router.get("/brands", response_model=List[str])
async def get_brands():
    return [b.value for b in configured_brands()]


@router.get("/fuel-prices", response_model=List[FuelPriceResponse])
async def get_fuel_prices():
    return [FuelPriceResponse(label=k, price=v) for k, v in settings.FUEL_PRICES.items()]
