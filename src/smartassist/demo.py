"""In-memory collaborators for the admin CLI, examples, and tests.

These stand in for a real CMS, mail transport, and shop so the dispatch
engine can be exercised end to end without external systems.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field

from smartassist.chat import ContentItem, trim_words
from smartassist.triggers.builtin.collaborators import Author, Post, Product
from smartassist.triggers.sanitize import sanitize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentMail:
    to: str
    subject: str
    body: str
    headers: tuple[str, ...] = ()


class InMemoryContent:
    """Posts and authors held in dicts. Also a ContentSupplier."""

    def __init__(
        self,
        posts: list[Post] | None = None,
        authors: list[Author] | None = None,
        *,
        context_words: int = 50,
    ) -> None:
        self.posts: dict[int, Post] = {p.id: p for p in posts or ()}
        self.authors: dict[int, Author] = {a.id: a for a in authors or ()}
        self._context_words = context_words

    def add_post(self, post: Post) -> None:
        self.posts[post.id] = post

    def add_author(self, author: Author) -> None:
        self.authors[author.id] = author

    def get_post(self, post_id: int) -> Post | None:
        post = self.posts.get(post_id)
        if post is None or not post.is_published:
            return None
        return post

    def get_user(self, user_id: int) -> Author | None:
        return self.authors.get(user_id)

    def get_content_for_context(self) -> list[ContentItem]:
        return [
            ContentItem(
                title=post.title,
                content=trim_words(sanitize_text(post.content), self._context_words),
            )
            for post in self.posts.values()
            if post.is_published
        ]


class RecordingMailer:
    """Keeps every message instead of sending it.

    Set ``accept=False`` to simulate a transport that refuses mail.
    """

    def __init__(self, *, accept: bool = True) -> None:
        self.accept = accept
        self.outbox: list[SentMail] = []

    def send(self, to: str, subject: str, body: str, headers: list[str]) -> bool:
        if not self.accept:
            return False
        self.outbox.append(SentMail(to, subject, body, tuple(headers)))
        logger.info("Recorded mail to %s: %s", to, subject)
        return True


@dataclass
class InMemoryShop:
    """Catalog plus a single cart."""

    products: dict[int, Product] = field(default_factory=dict)
    cart: dict[str, tuple[int, int]] = field(default_factory=dict)
    base_url: str = "http://localhost"
    _keys: itertools.count = field(default_factory=lambda: itertools.count(1), repr=False)

    def add_product(self, product: Product) -> None:
        self.products[product.id] = product

    def get_product(self, product_id: int) -> Product | None:
        return self.products.get(product_id)

    def add_to_cart(self, product_id: int, quantity: int) -> str | None:
        if product_id not in self.products:
            return None
        key = f"item-{next(self._keys)}"
        self.cart[key] = (product_id, quantity)
        return key

    def cart_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/cart"


def sample_content() -> InMemoryContent:
    """A small published site: one author, two posts, one draft."""
    return InMemoryContent(
        posts=[
            Post(
                id=5,
                title="Getting started",
                author_id=42,
                url="http://localhost/getting-started",
                content="How to set up the assistant on your site.",
            ),
            Post(
                id=7,
                title="Opening hours",
                author_id=42,
                url="http://localhost/hours",
                content="We are open Monday to Friday, nine to five.",
            ),
            Post(id=9, title="Unreleased", author_id=42, status="draft"),
        ],
        authors=[Author(id=42, display_name="Dana", email="dana@example.com")],
    )


def sample_shop() -> InMemoryShop:
    shop = InMemoryShop()
    shop.add_product(Product(id=12, name="Mug", price="9.00", url="http://localhost/mug"))
    shop.add_product(Product(id=15, name="Poster", price="15.00", in_stock=False))
    return shop
