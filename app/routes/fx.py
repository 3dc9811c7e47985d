# app/routes/fx.py
import time
from fastapi import APIRouter, Depends, Query

from app.models.enums import Currency
from app.services.prices import PriceLookup, get_price_lookup

router = APIRouter(prefix="/fx", tags=["fx"])


@router.get("/rate")
def get_rate(
    from_: Currency = Query(Currency.USD, alias="from"),
    to: Currency = Query(Currency.INR),
    lookup: PriceLookup = Depends(get_price_lookup),
):
    """Exchange rate between the supported currencies, cached by the lookup."""
    if from_ == to:
        return {"from": from_.value, "to": to.value, "rate": 1.0, "source": "identity", "as_of": int(time.time())}

    rate = lookup.get_rate(from_.value, to.value)
    return {"from": from_.value, "to": to.value, "rate": rate, "source": "market", "as_of": int(time.time())}
