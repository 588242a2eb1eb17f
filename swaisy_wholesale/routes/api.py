"""JSON API for the catalog, orders and gallery."""

from __future__ import annotations

from io import BytesIO
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request, send_file

from ..common.errors import CatalogImportError, NotFoundError, SpreadsheetError
from ..common.models.product import Product
from ..services import spreadsheet
from ..services.draft_order import DraftOrder, for_user
from .auth import current_user, requires

api_bp = Blueprint("swaisy_api", __name__, url_prefix="/api")

_TRUTHY = {"1", "true", "yes", "on"}


def _components() -> Dict[str, Any]:
    return current_app.extensions["swaisy_components"]


@api_bp.errorhandler(NotFoundError)
def _not_found(exc: NotFoundError):
    return jsonify({"status": "error", "message": f"{exc.kind} not found"}), 404


@api_bp.errorhandler(ValueError)
def _invalid(exc: ValueError):
    return jsonify({"status": "error", "message": str(exc)}), 400


@api_bp.get("/health")
def health():
    return jsonify({"status": "ok", "products": len(_components()["product_store"])})


# ---- catalog ----


@api_bp.get("/products")
@requires("catalog.view")
def list_products():
    products = _components()["product_store"].list_products()
    query = (request.args.get("q") or "").strip().lower()
    if query:
        products = [p for p in products if query in p.name.lower() or (p.name_ar and query in p.name_ar)]
    category = (request.args.get("category") or "").strip()
    if category:
        products = [p for p in products if p.category == category]
    if request.args.get("special_offers", "").lower() in _TRUTHY:
        products = [p for p in products if p.is_special_offer]
    return jsonify({"products": [p.to_dict() for p in products]})


@api_bp.get("/products/<product_id>")
@requires("catalog.view")
def get_product(product_id: str):
    product = _components()["product_store"].get_product(product_id)
    return jsonify({"product": product.to_dict()})


@api_bp.put("/products/<product_id>")
@requires("inventory.manage")
def update_product(product_id: str):
    payload = request.get_json(silent=True) or {}
    product = Product.from_dict({**payload, "id": product_id})
    updated = _components()["product_store"].update_product(product)
    return jsonify({"status": "ok", "product": updated.to_dict()})


@api_bp.post("/products/import")
@requires("inventory.manage")
def import_products():
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"status": "error", "message": "no file uploaded"}), 400
    special_offers = str(request.form.get("special_offers", "")).lower() in _TRUTHY

    try:
        rows = spreadsheet.read_rows(upload.read(), upload.filename)
        result = _components()["product_store"].import_rows(rows, special_offers=special_offers)
    except (CatalogImportError, SpreadsheetError) as exc:
        return jsonify({"status": "error", "message": f"Error: {exc}"}), 400

    if special_offers:
        message = f"Successfully marked/added {result.count} special offers."
    else:
        message = f"Successfully loaded {result.count} products."
    return jsonify({"status": "ok", "message": message, **result.summary()})


@api_bp.get("/products/export")
@requires("inventory.manage")
def export_products():
    fmt = (request.args.get("format") or "xlsx").lower()
    products = _components()["product_store"].list_products(apply_gallery=False)
    if fmt == "csv":
        body, mimetype = spreadsheet.export_csv(products), "text/csv"
    elif fmt == "xlsx":
        body = spreadsheet.export_xlsx(products)
        mimetype = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    else:
        return jsonify({"status": "error", "message": f"unsupported export format: {fmt}"}), 400
    return send_file(
        BytesIO(body),
        mimetype=mimetype,
        as_attachment=True,
        download_name=f"{spreadsheet.EXPORT_FILENAME}.{fmt}",
    )


# ---- orders ----


@api_bp.get("/orders")
@requires("orders.view")
def list_orders():
    orders = _components()["order_repo"].list_orders(current_user())
    return jsonify({"orders": [o.to_dict() for o in orders]})


@api_bp.post("/orders")
@requires("orders.submit")
def create_order():
    payload = request.get_json(silent=True) or {}
    store = _components()["product_store"]

    # fill item snapshots the client left out from the current catalog
    items = []
    for raw in payload.get("items") or []:
        if not isinstance(raw, dict):
            raise ValueError("order items must be objects")
        item = dict(raw)
        if "price" not in item or "itemName" not in item:
            product = store.get_product(str(item.get("itemId", "")))
            item.setdefault("price", product.default_price)
            item.setdefault("itemName", product.name)
        items.append(item)

    user = current_user()
    draft = for_user(DraftOrder.from_dict({**payload, "items": items}), user)
    order = _components()["order_repo"].create_order(draft, created_by=user.username)
    return jsonify({"status": "ok", "order": order.to_dict()}), 201


@api_bp.patch("/orders/<order_id>/status")
@requires("orders.manage")
def update_order_status(order_id: str):
    payload = request.get_json(silent=True) or {}
    status = str(payload.get("status", "")).strip().lower()
    order = _components()["order_repo"].update_status(order_id, status)
    return jsonify({"status": "ok", "order": order.to_dict()})


@api_bp.delete("/orders/<order_id>")
@requires("orders.manage")
def delete_order(order_id: str):
    _components()["order_repo"].delete_order(order_id)
    return jsonify({"status": "ok"})


# ---- gallery ----


@api_bp.get("/gallery")
@requires("gallery.manage")
def list_gallery():
    items = _components()["gallery_repo"].list_items()
    return jsonify({"items": [i.to_dict() for i in items]})


@api_bp.post("/gallery")
@requires("gallery.manage")
def upload_gallery_image():
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"status": "error", "message": "no image uploaded"}), 400
    item = _components()["gallery_repo"].add_image(
        filename=upload.filename,
        content=upload.read(),
        mimetype=upload.mimetype,
        target_name=request.form.get("name"),
    )
    return jsonify({"status": "ok", "item": item.to_dict()}), 201


@api_bp.delete("/gallery/<item_id>")
@requires("gallery.manage")
def delete_gallery_image(item_id: str):
    _components()["gallery_repo"].delete_item(item_id)
    return jsonify({"status": "ok"})
