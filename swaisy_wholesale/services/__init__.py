"""Service layer of the wholesale ordering app."""

from .blob_store import JsonFileBlobStore, SqlBlobStore
from .gallery_repository import GalleryRepository
from .order_repository import OrderRepository
from .product_store import ProductStore
from .user_directory import UserDirectory

__all__ = [
    "JsonFileBlobStore",
    "SqlBlobStore",
    "GalleryRepository",
    "OrderRepository",
    "ProductStore",
    "UserDirectory",
]
