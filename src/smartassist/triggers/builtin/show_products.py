"""ShowProductsTrigger -- return product cards for the chat UI to render.

Directive: ``[SHOW_PRODUCTS:12,15,31]``. Read-only; anyone may fire it.

The param is named ``product_list`` rather than ``product_ids``: names
containing "id" are sanitized to a single integer, which would keep only
the first product.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from smartassist.models.trigger import (
    ExecutionContext,
    ExecutionResult,
    SettingField,
    TriggerDefinition,
)
from smartassist.settings import as_bool
from smartassist.triggers.sanitize import sanitize_number

if TYPE_CHECKING:
    from smartassist.settings import TriggerSettingsStore
    from smartassist.triggers.builtin.collaborators import Shop

DEFAULT_MAX_PRODUCTS = 10


def parse_product_list(raw: str) -> list[int]:
    """Positive, de-duplicated product ids from a comma-separated list."""
    ids: list[int] = []
    for part in str(raw).split(","):
        product_id = sanitize_number(part)
        if product_id and product_id not in ids:
            ids.append(product_id)
    return ids


class ShowProductsTrigger:
    """Looks up published products and returns their display data."""

    definition = TriggerDefinition(
        id="show_products",
        name="Show Products",
        description="Returns product information for display in the chat.",
        command_pattern=r"\[SHOW_PRODUCTS:([^\]]+)\]",
        required_params=("product_list",),
        settings_schema=(
            SettingField(
                name="enabled",
                type="checkbox",
                label="Enable this trigger",
                default=True,
                description="Allow the AI to display product information.",
            ),
            SettingField(
                name="max_products",
                type="number",
                label="Maximum products per directive",
                default=DEFAULT_MAX_PRODUCTS,
            ),
            SettingField(
                name="hide_out_of_stock",
                type="checkbox",
                label="Hide out-of-stock products",
                default=False,
            ),
        ),
    )

    def __init__(self, shop: Shop, settings: TriggerSettingsStore) -> None:
        self._shop = shop
        self._settings = settings

    def can_execute(self, context: ExecutionContext) -> bool:
        return True

    def execute(self, params: dict[str, Any], context: ExecutionContext) -> ExecutionResult:
        product_ids = parse_product_list(params["product_list"])
        if not product_ids:
            return ExecutionResult.failure("No product IDs provided.")

        settings = self._settings.resolve(self.definition)
        limit = sanitize_number(settings.get("max_products")) or DEFAULT_MAX_PRODUCTS
        hide_out_of_stock = as_bool(settings.get("hide_out_of_stock"))

        products = []
        for product_id in product_ids[:limit]:
            product = self._shop.get_product(product_id)
            if product is None or product.status != "publish":
                continue
            if hide_out_of_stock and not product.in_stock:
                continue
            products.append(
                {
                    "id": product.id,
                    "name": product.name,
                    "price": product.price,
                    "url": product.url,
                    "image": product.image,
                    "inStock": product.in_stock,
                }
            )

        if not products:
            return ExecutionResult.failure("No valid products found.")

        noun = "product" if len(products) == 1 else "products"
        return ExecutionResult(
            success=True,
            message=f"Found {len(products)} {noun}.",
            data={"products": products},
        )
