"""Built-in triggers for SmartAssist.

Provides three ready-to-use triggers:
- EmailPostAuthorTrigger: Email the author of a post (needs edit_posts)
- AddToCartTrigger: Add a product to the visitor's cart
- ShowProductsTrigger: Return product cards for display

The commerce triggers are only built when a Shop collaborator is supplied.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from smartassist.triggers.builtin.add_to_cart import AddToCartTrigger
from smartassist.triggers.builtin.collaborators import (
    Author,
    ContentSource,
    Mailer,
    Post,
    Product,
    Shop,
)
from smartassist.triggers.builtin.email_author import EmailPostAuthorTrigger
from smartassist.triggers.builtin.show_products import ShowProductsTrigger

if TYPE_CHECKING:
    from smartassist.settings import TriggerSettingsStore
    from smartassist.triggers.protocols import Trigger


def builtin_triggers(
    settings: TriggerSettingsStore,
    *,
    content: ContentSource,
    mailer: Mailer,
    shop: Shop | None = None,
    site_name: str = "",
    admin_email: str = "",
) -> list[Trigger]:
    """Construct the built-in triggers in registration order."""
    triggers: list[Trigger] = [
        EmailPostAuthorTrigger(
            content,
            mailer,
            settings,
            site_name=site_name,
            admin_email=admin_email,
        )
    ]
    if shop is not None:
        triggers.append(AddToCartTrigger(shop))
        triggers.append(ShowProductsTrigger(shop, settings))
    return triggers


__all__ = [
    "AddToCartTrigger",
    "Author",
    "ContentSource",
    "EmailPostAuthorTrigger",
    "Mailer",
    "Post",
    "Product",
    "Shop",
    "ShowProductsTrigger",
    "builtin_triggers",
]
