from io import BytesIO

import pytest
from PIL import Image

from swaisy_wholesale.app import create_app
from swaisy_wholesale.common.models.product import Product
from swaisy_wholesale.common.models.user import User
from swaisy_wholesale.config import WholesaleConfig
from swaisy_wholesale.services import GalleryRepository, JsonFileBlobStore, ProductStore


def make_image(fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (8, 8), color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_product(pid: str, name: str, price: float = 1.0, **extra) -> Product:
    return Product(id=pid, name=name, default_price=price, image_url=f"/images/{name}.jpg", **extra)


@pytest.fixture
def png_bytes() -> bytes:
    return make_image()


@pytest.fixture
def blob_store(tmp_path):
    return JsonFileBlobStore(tmp_path / "data")


@pytest.fixture
def gallery(blob_store):
    return GalleryRepository(blob_store)


@pytest.fixture
def product_store(blob_store, gallery):
    return ProductStore(blob_store, gallery=gallery)


@pytest.fixture
def config(tmp_path):
    return WholesaleConfig(
        secret_key="test-secret",
        project_root=tmp_path,
        data_dir=tmp_path / "data",
        seed_catalog=True,
        users=[
            User(id="u1", username="admin", password="admin", role="admin"),
            User(id="u2", username="salesman", password="password", role="salesman"),
            User(id="u3", username="editor", password="editor", role="editor"),
            User(
                id="u4",
                username="corner",
                password="shop",
                role="shop",
                store_name="Corner Shop",
                phone_number="71123456",
                address="Hamra St, Beirut",
            ),
        ],
    )


@pytest.fixture
def app(config):
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(username: str, password: str):
        return client.post("/auth/login", json={"username": username, "password": password})

    return _login
