"""Swaisy wholesale ordering Flask application."""

from __future__ import annotations

from typing import Optional

from flask import Flask

from .common.db.session import build_session_factory
from .config import STORAGE_SQL, WholesaleConfig
from .routes import api, auth
from .services import (
    GalleryRepository,
    JsonFileBlobStore,
    OrderRepository,
    ProductStore,
    SqlBlobStore,
    UserDirectory,
)


def _build_blob_store(config: WholesaleConfig):
    if config.storage == STORAGE_SQL:
        return SqlBlobStore(build_session_factory(config.resolved_database_url))
    return JsonFileBlobStore(config.data_dir)


def create_app(config: Optional[WholesaleConfig] = None) -> Flask:
    config = config or WholesaleConfig.load()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes
    app.config["SWAISY_CONFIG"] = config

    blob_store = _build_blob_store(config)
    gallery_repo = GalleryRepository(blob_store)
    product_store = ProductStore(blob_store, gallery=gallery_repo)
    if config.seed_catalog:
        product_store.seed_if_empty()

    components = {
        "blob_store": blob_store,
        "gallery_repo": gallery_repo,
        "product_store": product_store,
        "order_repo": OrderRepository(blob_store),
        "user_directory": UserDirectory(config.users),
    }
    app.extensions["swaisy_components"] = components

    app.register_blueprint(auth.auth_bp)
    app.register_blueprint(api.api_bp)

    return app


def main() -> None:
    app = create_app()
    port = app.config["SWAISY_CONFIG"].port
    app.run(host="0.0.0.0", port=port, debug=False)


if __name__ == "__main__":
    main()
