"""AddToCartTrigger -- put a product in the visitor's cart.

Directive: ``[ADD_TO_CART:product_id:quantity]``. Anyone may fire it,
guests included.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from smartassist.models.trigger import (
    ExecutionContext,
    ExecutionResult,
    SettingField,
    TriggerDefinition,
)

if TYPE_CHECKING:
    from smartassist.triggers.builtin.collaborators import Shop


class AddToCartTrigger:
    """Adds a purchasable, in-stock product to the cart."""

    definition = TriggerDefinition(
        id="add_to_cart",
        name="Add to Cart",
        description="Adds a product to the shopping cart.",
        command_pattern=r"\[ADD_TO_CART:([^:\]]+):([^\]]+)\]",
        required_params=("product_id", "quantity"),
        settings_schema=(
            SettingField(
                name="enabled",
                type="checkbox",
                label="Enable this trigger",
                default=True,
                description="Allow the AI to add products to the shopping cart.",
            ),
        ),
    )

    def __init__(self, shop: Shop) -> None:
        self._shop = shop

    def can_execute(self, context: ExecutionContext) -> bool:
        return True

    def execute(self, params: dict[str, Any], context: ExecutionContext) -> ExecutionResult:
        product_id = int(params["product_id"])
        quantity = max(int(params.get("quantity", 1)), 1)

        product = self._shop.get_product(product_id)
        if product is None:
            return ExecutionResult.failure("Product not found.")
        if not product.purchasable:
            return ExecutionResult.failure("This product cannot be purchased.")
        if not product.in_stock:
            return ExecutionResult.failure("This product is out of stock.")

        cart_item_key = self._shop.add_to_cart(product_id, quantity)
        if not cart_item_key:
            return ExecutionResult.failure("Failed to add product to cart.")

        return ExecutionResult(
            success=True,
            message=f"Added {quantity} × {product.name} to cart.",
            data={
                "productId": product_id,
                "productName": product.name,
                "quantity": quantity,
                "cartUrl": self._shop.cart_url(),
                "cartItemKey": cart_item_key,
            },
        )
