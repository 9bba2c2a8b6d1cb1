"""Pydantic models for JSON API request bodies."""

from pydantic import BaseModel, Field


class SelectionPayload(BaseModel):
    """Variant, add-on picks (group → option name) and common change ids."""

    variant_id: str | None = None
    addons: dict[str, str] = Field(default_factory=dict)
    common_change_ids: list[str] = Field(default_factory=list)


class AddToCartPayload(SelectionPayload):
    """Configured item to add to the cart."""

    restaurant_id: str
    item_id: str
    quantity: int = Field(default=1, ge=1)


class QuantityPayload(BaseModel):
    """New quantity for a cart line; zero or less removes it."""

    quantity: int
