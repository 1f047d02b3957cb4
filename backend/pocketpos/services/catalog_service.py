"""
Catalog Store: ordered products and the category set they are grouped by.

INVARIANTS:
- DEFAULT_CATEGORY always exists and cannot be deleted
- Categories are uppercased, unique and kept sorted
- Every product references an existing category; rename/delete cascades are
  computed on copies and swapped in one assignment
- Product order is the display order (drag & drop reorders it)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Iterable

from ..validation import (
    ZERO,
    ValidationError,
    PreconditionError,
    enforce_rules_price,
    money_to_json,
    to_bool,
    to_money,
    to_text,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "ALLGEMEIN"
NEW_PRODUCT_NAME = "Neuer Artikel"

PRODUCT_MUTABLE_FIELDS = {"name", "price", "active", "category"}
PRODUCT_KNOWN_KEYS = {"id", "name", "price", "active", "category", "display_order", "displayOrder"}


def normalize_category(name: Any) -> str:
    return (to_text(name) or "").upper()


def new_product_id() -> str:
    return f"p{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Product:
    id: str
    name: str = NEW_PRODUCT_NAME
    price: Decimal = ZERO
    active: bool = True
    category: str = DEFAULT_CATEGORY
    # Unknown keys from imported documents, written back out untouched
    extras: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = dict(self.extras)
        data.update({
            "id": self.id,
            "name": self.name,
            "price": money_to_json(self.price),
            "active": self.active,
            "category": self.category,
        })
        return data

    @classmethod
    def from_dict(cls, raw: dict) -> "Product":
        """Permissive: missing or unreadable fields fall back to defaults."""
        try:
            price = enforce_rules_price(to_money(raw.get("price"), field="price", default=ZERO))
        except ValidationError:
            logger.warning("Product %r has an unreadable price %r; using 0", raw.get("id"), raw.get("price"))
            price = ZERO
        try:
            active = to_bool(raw.get("active"), field="active", default=True)
        except ValidationError:
            active = True
        return cls(
            id=to_text(raw.get("id")) or new_product_id(),
            name=to_text(raw.get("name")) or NEW_PRODUCT_NAME,
            price=price,
            active=active,
            category=normalize_category(raw.get("category")) or DEFAULT_CATEGORY,
            extras={k: v for k, v in raw.items() if k not in PRODUCT_KNOWN_KEYS},
        )


def _first_of_each_id(products: Iterable[Product]) -> list[Product]:
    # First copy of an id wins
    seen: set[str] = set()
    out = []
    for product in products:
        if product.id in seen:
            logger.warning("Dropping duplicate product id %r", product.id)
            continue
        seen.add(product.id)
        out.append(product)
    return out


def _sorted_categories(names: Iterable[str]) -> list[str]:
    out = {normalize_category(n) for n in names}
    out.discard("")
    out.add(DEFAULT_CATEGORY)
    return sorted(out)


class CatalogStore:
    def __init__(self, products: Iterable[Product] = (), categories: Iterable[str] = ()):
        products = _first_of_each_id(products)
        self._categories = _sorted_categories(list(categories) + [p.category for p in products])
        self._products = products

    # ------------------------------------------------------------------
    # Read access (copies only; the sequences are mutated through the
    # operations below)
    # ------------------------------------------------------------------

    @property
    def products(self) -> tuple[Product, ...]:
        return tuple(self._products)

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(self._categories)

    def product_ids(self) -> list[str]:
        return [p.id for p in self._products]

    def get_product(self, product_id: str) -> Product | None:
        idx = self._index_of(product_id)
        return None if idx is None else self._products[idx]

    def products_in(self, category: str) -> list[Product]:
        category = normalize_category(category)
        return [p for p in self._products if p.category == category]

    def list_products(self, category: str | None = None) -> list[dict]:
        wanted = normalize_category(category) if category else None
        items = []
        for position, p in enumerate(self._products):
            if wanted and p.category != wanted:
                continue
            item = p.to_dict()
            item["display_order"] = position
            items.append(item)
        return items

    def _index_of(self, product_id: str) -> int | None:
        for i, p in enumerate(self._products):
            if p.id == product_id:
                return i
        return None

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def add_product(self, category: str | None = None) -> Product:
        if category is None:
            target = self._categories[0]
        else:
            target = normalize_category(category)
            if target not in self._categories:
                raise ValidationError(f"Unknown category: {target or category!r}")
        product = Product(id=new_product_id(), category=target)
        self._products = self._products + [product]
        return product

    def normalize_patch(self, patch: dict) -> dict:
        """Validate and coerce a product patch. Unknown fields are dropped."""
        clean: dict = {}
        for k, v in patch.items():
            if k not in PRODUCT_MUTABLE_FIELDS:
                continue
            if k == "name":
                name = to_text(v)
                if not name:
                    raise ValidationError("name cannot be blank")
                clean[k] = name
            elif k == "price":
                clean[k] = enforce_rules_price(to_money(v, field="price"))
            elif k == "active":
                clean[k] = to_bool(v, field="active")
            elif k == "category":
                cat = normalize_category(v)
                if cat not in self._categories:
                    raise ValidationError(f"Unknown category: {cat or v!r}")
                clean[k] = cat
        return clean

    def update_product(self, product_id: str, patch: dict) -> Product | None:
        idx = self._index_of(product_id)
        if idx is None:
            logger.info("update_product: product %s not found; nothing changed", product_id)
            return None
        clean = self.normalize_patch(patch)
        updated = replace(self._products[idx], **clean)
        products = list(self._products)
        products[idx] = updated
        self._products = products
        return updated

    def delete_product(self, product_id: str) -> bool:
        idx = self._index_of(product_id)
        if idx is None:
            return False
        self._products = self._products[:idx] + self._products[idx + 1:]
        return True

    def reorder_product(self, product_id: str, target_id: str) -> bool:
        """
        Move product_id to the index target_id currently occupies.

        [a, b, c] reorder(b, a) -> [b, a, c]; reorder(a, c) -> [b, c, a].
        """
        if not product_id or product_id == target_id:
            return False
        old_index = self._index_of(product_id)
        new_index = self._index_of(target_id)
        if old_index is None or new_index is None:
            logger.info("reorder_product: unresolved id (%s -> %s); order unchanged", product_id, target_id)
            return False
        products = list(self._products)
        moved = products.pop(old_index)
        products.insert(new_index, moved)
        self._products = products
        return True

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def add_category(self, name: str) -> str | None:
        upper = normalize_category(name)
        if not upper or upper in self._categories:
            return None
        self._categories = sorted(self._categories + [upper])
        return upper

    def rename_category(self, old: str, new: str) -> bool:
        old_name = normalize_category(old)
        new_name = normalize_category(new)
        if not new_name or new_name == old_name:
            return False
        if old_name not in self._categories:
            logger.info("rename_category: %s does not exist", old_name)
            return False
        if new_name in self._categories:
            logger.info("rename_category: %s already exists", new_name)
            return False

        categories = sorted(new_name if c == old_name else c for c in self._categories)
        if old_name == DEFAULT_CATEGORY:
            # The fallback bucket must survive under its own name
            categories = _sorted_categories(categories)
        products = [
            replace(p, category=new_name) if p.category == old_name else p
            for p in self._products
        ]
        self._categories, self._products = categories, products
        return True

    def delete_category(self, name: str) -> int:
        """Remove a category; its products move to DEFAULT_CATEGORY. Returns how many moved."""
        target = normalize_category(name)
        if target == DEFAULT_CATEGORY:
            raise PreconditionError(f"{DEFAULT_CATEGORY} cannot be deleted")
        if target not in self._categories:
            return 0

        moved = 0
        products = []
        for p in self._products:
            if p.category == target:
                p = replace(p, category=DEFAULT_CATEGORY)
                moved += 1
            products.append(p)
        categories = [c for c in self._categories if c != target]
        self._categories, self._products = categories, products
        return moved

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "products": [p.to_dict() for p in self._products],
            "categories": list(self._categories),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "CatalogStore":
        data = data or {}
        raw_products = data.get("products")
        raw_categories = data.get("categories")
        products = [Product.from_dict(r) for r in raw_products if isinstance(r, dict)] if isinstance(raw_products, list) else []
        categories = [c for c in raw_categories if isinstance(c, str)] if isinstance(raw_categories, list) else []
        return cls(products=products, categories=categories)
