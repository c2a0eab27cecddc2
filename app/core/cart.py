from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from app.utils.time import days_from, today as _today

ANNUAL_RENEWAL_DAYS = 365
MONTHLY_RENEWAL_DAYS = 30


class CartItem(BaseModel):
    planId: Optional[int] = Field(default=None, alias="plan_id")
    name: str = Field(default="", alias="plan_name")
    description: str = Field(default="", alias="plan_description")
    image: str = Field(default="", alias="plan_image")
    quantity: int = Field(default=1, alias="plan_quantity")
    price: float = 0.0
    isAnnual: bool = Field(default=False, alias="is_annual")

    model_config = {"populate_by_name": True}


class Cart(BaseModel):
    items: List[CartItem] = Field(default_factory=list)
    subtotal: float = Field(default=0.0, alias="cart_subtotal")
    discount: float = Field(default=0.0, alias="cart_discount")
    shortfallForDiscount: Optional[Union[str, float]] = Field(default=None, alias="shortfall_for_discount")
    total: float = Field(default=0.0, alias="cart_total")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_api(cls, payload: Optional[dict]) -> "Cart":
        data = dict(payload or {})
        data["items"] = data.get("items") or []
        return cls.model_validate(data)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def has_annual(self) -> bool:
        return any(i.isAnnual for i in self.items)


def renewal_date(cart: Cart, start: Optional[date] = None) -> date:
    """Annual plans in the cart push renewal a year out; otherwise a month."""
    start = start or _today()
    return days_from(start, ANNUAL_RENEWAL_DAYS if cart.has_annual else MONTHLY_RENEWAL_DAYS)


def review_summary(cart: Cart, start: Optional[date] = None) -> dict:
    return {
        "items": [i.model_dump() for i in cart.items],
        "subtotal": round(cart.subtotal, 2),
        "discount": round(cart.discount, 2),
        "total": round(cart.total, 2),
        "shortfallForDiscount": cart.shortfallForDiscount,
        "renewalDate": renewal_date(cart, start).isoformat(),
    }
