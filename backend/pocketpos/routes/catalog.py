from __future__ import annotations

from flask import Blueprint, request

from . import gated, json_body, json_error, ok
from ..services import admin_service
from ..services.state_service import get_state

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


# =============================================================================
# PRODUCTS
# =============================================================================

@catalog_bp.get("/products")
def list_products():
    state = get_state()
    items = state.catalog.list_products(request.args.get("category"))
    return {"items": items, "count": len(items)}


@catalog_bp.post("/products")
def create_product():
    try:
        product = admin_service.add_product(get_state(), json_body().get("category"))
        return ok({"product": product.to_dict()}, 201)
    except Exception as e:
        return json_error(e, "create product")


@catalog_bp.put("/products/<product_id>")
def update_product(product_id: str):
    try:
        product = admin_service.update_product(get_state(), product_id, json_body())
        if product is None:
            return {"error": "Product not found"}, 404
        return ok({"product": product.to_dict()})
    except Exception as e:
        return json_error(e, "update product")


@catalog_bp.delete("/products/<product_id>")
def delete_product(product_id: str):
    try:
        return gated(admin_service.request_delete_product(get_state(), product_id))
    except Exception as e:
        return json_error(e, "delete product")


@catalog_bp.post("/products/<product_id>/reorder")
def reorder_product(product_id: str):
    target_id = json_body().get("target_id")
    if not target_id:
        return {"error": "target_id is required"}, 400
    try:
        state = get_state()
        moved = admin_service.reorder_product(state, product_id, target_id)
        return ok({"moved": moved, "order": state.catalog.product_ids()})
    except Exception as e:
        return json_error(e, "reorder product")


# =============================================================================
# CATEGORIES
# =============================================================================

@catalog_bp.get("/categories")
def list_categories():
    state = get_state()
    items = [
        {"name": name, "product_count": len(state.catalog.products_in(name))}
        for name in state.catalog.categories
    ]
    return {"items": items, "count": len(items)}


@catalog_bp.post("/categories")
def create_category():
    state = get_state()
    name = json_body().get("name")
    try:
        if name is None:
            return gated(admin_service.request_add_category(state))
        added = admin_service.add_category(state, name)
        if added is None:
            return {"error": "Category is blank or already exists"}, 409
        return ok({"name": added, "categories": list(state.catalog.categories)}, 201)
    except Exception as e:
        return json_error(e, "create category")


@catalog_bp.put("/categories/<name>")
def rename_category(name: str):
    state = get_state()
    new_name = json_body().get("new_name")
    try:
        if new_name is None:
            return gated(admin_service.request_rename_category(state, name))
        if not admin_service.rename_category(state, name, new_name):
            return {"error": "Category could not be renamed"}, 409
        return ok({"categories": list(state.catalog.categories)})
    except Exception as e:
        return json_error(e, "rename category")


@catalog_bp.delete("/categories/<name>")
def delete_category(name: str):
    try:
        return gated(admin_service.request_delete_category(get_state(), name))
    except Exception as e:
        return json_error(e, "delete category")
