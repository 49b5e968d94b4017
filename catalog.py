"""
Catalog service: product listing, search and admin product maintenance.

Products are fetched whole and filtered in memory; results keep the store's
insertion order. When the store is unreachable and CATALOG_DEMO_FALLBACK is on,
reads are served from a synthetic catalog of 3 products per category.
"""

import logging
from typing import List, Optional, Union

import database
import settings
from errors import ProductNotFound, StoreUnavailable, ValidationError
from schemas import DEFAULT_IMAGE, Product, ProductUpdateBody

logger = logging.getLogger(__name__)

PRODUCTS = "products"

CATEGORIES = [
    "One sound crackers",
    "Electric crackers",
    "Deluxe crackers",
    "Garland crackers",
    "Ground chakkar",
    "Flower pots",
    "Atom bomb",
    "Rockets",
    "Twinkling Stars and Candles",
    "Kids special and candles",
    "Night aerial Attractions",
    "Aerial and festival repeating shots",
    "Festival mega repeating shots",
    "Sparklers",
    "Gift boxes and family pack",
    "2025 special crackers",
]

DEMO_PER_CATEGORY = 3


def demo_catalog() -> List[dict]:
    products = []
    for cat_index, cat in enumerate(CATEGORIES):
        for n in range(1, DEMO_PER_CATEGORY + 1):
            seq = cat_index * DEMO_PER_CATEGORY + n
            products.append({
                "id": f"{cat_index}-{n}",
                "name": f"Premium {cat} {n}",
                "category": cat,
                "price": float(100 + (seq * 37) % 500),
                "description": f"High-quality {cat.lower()} with vibrant colors and amazing effects. "
                               "Perfect for celebrations and festivals.",
                "image": DEFAULT_IMAGE,
                "in_stock": seq % 10 != 0,
                "featured": seq % 4 == 0,
            })
    return products


def _all_products() -> List[dict]:
    try:
        return database.get_documents(PRODUCTS)
    except StoreUnavailable:
        if not settings.CATALOG_DEMO_FALLBACK:
            raise
        logger.warning("Product store unavailable, serving demo catalog")
        return demo_catalog()


def _matches(product: dict, category: Optional[str], needle: Optional[str]) -> bool:
    if category and category != "all" and product.get("category") != category:
        return False
    if needle:
        name = (product.get("name") or "").lower()
        description = (product.get("description") or "").lower()
        if needle not in name and needle not in description:
            return False
    return True


def list_products(category: Optional[str] = None, search: Optional[str] = None) -> List[dict]:
    needle = search.strip().lower() if search and search.strip() else None
    return [p for p in _all_products() if _matches(p, category, needle)]


def featured_products() -> List[dict]:
    return [p for p in _all_products() if p.get("featured") and p.get("in_stock", True)]


def get_product(product_id: str) -> dict:
    try:
        product = database.get_document_by_id(PRODUCTS, product_id)
    except StoreUnavailable:
        if not settings.CATALOG_DEMO_FALLBACK:
            raise
        logger.warning("Product store unavailable, looking up %s in demo catalog", product_id)
        product = next((p for p in demo_catalog() if p["id"] == product_id), None)
    if not product:
        raise ProductNotFound()
    return product


# ----------------------- Admin -----------------------

def _check_category(category: Optional[str]):
    if category is not None and category not in CATEGORIES:
        raise ValidationError(f"Unknown category: {category}")


def search_admin_products(term: Optional[str] = None) -> List[dict]:
    """Admin table search: substring of the product name or its category."""
    products = database.get_documents(PRODUCTS)
    if not term:
        return products
    needle = term.lower()
    return [
        p for p in products
        if needle in (p.get("name") or "").lower() or needle in (p.get("category") or "").lower()
    ]


def create_product(data: Product) -> str:
    _check_category(data.category)
    pid = database.create_document(PRODUCTS, Product(**data.model_dump()))
    logger.info("Created product %s (%s)", pid, data.name)
    return pid


def update_product(product_id: str, data: Union[ProductUpdateBody, dict]) -> dict:
    if isinstance(data, ProductUpdateBody):
        data = data.model_dump(exclude_none=True)
    update = {k: v for k, v in data.items() if v is not None}
    if not update:
        raise ValidationError("No fields to update")
    _check_category(update.get("category"))
    if not database.update_document(PRODUCTS, product_id, update):
        raise ProductNotFound()
    return database.get_document_by_id(PRODUCTS, product_id)


def delete_product(product_id: str):
    if not database.delete_document(PRODUCTS, product_id):
        raise ProductNotFound()
    logger.info("Deleted product %s", product_id)
