"""Collaborator protocols the built-in triggers act through.

The dispatch engine does not know about posts, mail, or carts. The
built-in triggers reach those systems through these small protocols,
implemented by the embedding application (see smartassist.demo for
in-memory versions).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Post:
    id: int
    title: str
    author_id: int
    url: str = ""
    content: str = ""
    status: str = "publish"

    @property
    def is_published(self) -> bool:
        return self.status == "publish"


@dataclass(frozen=True)
class Author:
    id: int
    display_name: str
    email: str


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price: str
    url: str = ""
    image: str = ""
    in_stock: bool = True
    purchasable: bool = True
    status: str = "publish"


@runtime_checkable
class ContentSource(Protocol):
    """Read access to posts and their authors."""

    def get_post(self, post_id: int) -> Post | None:
        ...

    def get_user(self, user_id: int) -> Author | None:
        ...


@runtime_checkable
class Mailer(Protocol):
    """Outbound mail. Returns False when the message could not be handed off."""

    def send(self, to: str, subject: str, body: str, headers: list[str]) -> bool:
        ...


@runtime_checkable
class Shop(Protocol):
    """Catalog lookups and the current visitor's cart."""

    def get_product(self, product_id: int) -> Product | None:
        ...

    def add_to_cart(self, product_id: int, quantity: int) -> str | None:
        """Add to cart; returns the cart item key, or None on failure."""
        ...

    def cart_url(self) -> str:
        ...
