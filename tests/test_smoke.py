import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from opnameapp import create_app
from opnameapp.extensions import db


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "LOG_TO_FILE": False,
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def test_health_reports_database(client):
    response = client.get("/health/")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "database": True, "error": None}


@pytest.mark.parametrize(
    "path",
    ["/locations", "/master-data/products", "/export/"],
)
def test_read_endpoints_respond(client, path):
    response = client.get(path)

    assert response.status_code == 200


def test_full_count_session(client):
    client.post(
        "/master-data/import",
        json={"products": [{"barcode": "1", "product_name": "Beras", "uom": "KG", "selling_price": 13000}]},
    )
    location_id = client.post("/locations", json={"name": "Gudang"}).get_json()["data"]["id"]
    for _ in range(3):
        client.post("/stock-count/scan", json={"locationId": location_id, "barcode": "1"})

    response = client.get(f"/export/locations/{location_id}.csv")

    assert response.status_code == 200
    assert response.get_data(as_text=True).endswith("Total Products,1\nTotal Items,3")
