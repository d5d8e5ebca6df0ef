"""
Product API tests.

Verifies:
- Unauthenticated requests return 401
- CRUD status codes (201 / 200 / 204 / 404)
- Validation errors come back as 400 {message, field}
"""

import pytest


NEW_PRODUCT = {
    "name": "Clutch Plate",
    "brand": "Mahindra Bolero",
    "code": "CP-MB-006",
    "hsnCode": "8708",
    "stock": 12,
    "purchasePrice": "1200",
    "sellingPrice": 1750.5,
    "gstRate": 28,
}


class TestUnauthenticatedAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/products/1"),
            ("PUT", "/api/products/1"),
            ("DELETE", "/api/products/1"),
            ("GET", "/api/invoices"),
            ("POST", "/api/invoices"),
            ("GET", "/api/settings"),
            ("PUT", "/api/settings"),
            ("GET", "/api/dashboard"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json() == {"message": "Authentication required"}


def test_list_products_ordered_by_name(auth_client, sql_catalogue):
    resp = auth_client.get("/api/products")
    assert resp.status_code == 200
    assert [p["name"] for p in resp.get_json()] == ["Brake Pad Set", "Headlight Bulb"]


def test_list_products_search(auth_client, sql_catalogue):
    resp = auth_client.get("/api/products?search=ALTO")
    assert [p["code"] for p in resp.get_json()] == ["HB-MA-004"]


def test_create_product(auth_client):
    resp = auth_client.post("/api/products", json=NEW_PRODUCT)
    assert resp.status_code == 201

    body = resp.get_json()
    assert body["id"] > 0
    assert body["purchasePrice"] == "1200.00"
    assert body["sellingPrice"] == "1750.50"
    assert body["stock"] == 12

    resp = auth_client.get(f"/api/products/{body['id']}")
    assert resp.status_code == 200
    assert resp.get_json()["code"] == "CP-MB-006"


def test_create_product_defaults(auth_client):
    payload = {k: NEW_PRODUCT[k] for k in ("name", "brand", "code", "purchasePrice", "sellingPrice")}
    body = auth_client.post("/api/products", json=payload).get_json()

    assert body["stock"] == 0
    assert body["gstRate"] == 28
    assert body["hsnCode"] == "8708"
    assert body["maxDiscount"] is None


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"name": None}, "name"),
        ({"name": "   "}, "name"),
        ({"stock": -1}, "stock"),
        ({"stock": 2.5}, "stock"),
        ({"sellingPrice": "abc"}, "sellingPrice"),
        ({"sellingPrice": "10.999"}, "sellingPrice"),
        ({"purchasePrice": -5}, "purchasePrice"),
        ({"gstRate": 150}, "gstRate"),
        ({"maxDiscount": 101}, "maxDiscount"),
        ({"id": 99}, "id"),
    ],
)
def test_create_product_validation(auth_client, overrides, field):
    payload = {**NEW_PRODUCT, **overrides}
    resp = auth_client.post("/api/products", json=payload)

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["field"] == field
    assert body["message"]


def test_create_product_missing_required_field(auth_client):
    payload = {k: v for k, v in NEW_PRODUCT.items() if k != "brand"}
    resp = auth_client.post("/api/products", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["field"] == "brand"


def test_duplicate_code_is_a_field_error(auth_client, sql_catalogue):
    resp = auth_client.post("/api/products", json={**NEW_PRODUCT, "code": "BP-MS-001"})
    assert resp.status_code == 400
    assert resp.get_json()["field"] == "code"


def test_update_product_partial(auth_client, sql_catalogue):
    product_id = sql_catalogue["brake"].id
    resp = auth_client.put(f"/api/products/{product_id}", json={"stock": 40, "sellingPrice": "699.00"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["stock"] == 40
    assert body["sellingPrice"] == "699.00"
    assert body["name"] == "Brake Pad Set"


def test_update_product_to_taken_code(auth_client, sql_catalogue):
    product_id = sql_catalogue["brake"].id
    resp = auth_client.put(f"/api/products/{product_id}", json={"code": "HB-MA-004"})
    assert resp.status_code == 400
    assert resp.get_json()["field"] == "code"


def test_update_missing_product(auth_client):
    resp = auth_client.put("/api/products/9999", json={"stock": 1})
    assert resp.status_code == 404
    assert resp.get_json() == {"message": "Product not found"}


def test_delete_product(auth_client, sql_catalogue):
    product_id = sql_catalogue["bulb"].id

    resp = auth_client.delete(f"/api/products/{product_id}")
    assert resp.status_code == 204
    assert resp.data == b""

    assert auth_client.get(f"/api/products/{product_id}").status_code == 404
    assert auth_client.delete(f"/api/products/{product_id}").status_code == 404


def test_unknown_route_is_json_404(auth_client):
    resp = auth_client.get("/api/nope")
    assert resp.status_code == 404
    assert "message" in resp.get_json()


def test_wrong_method_is_json_405(auth_client):
    resp = auth_client.patch("/api/products")
    assert resp.status_code == 405
    assert "message" in resp.get_json()


# Beyond the 64-bit INTEGER range of the id column
HUGE_ID = 99999999999999999999


def test_out_of_range_id_is_404(auth_client, sql_catalogue):
    assert auth_client.get(f"/api/products/{HUGE_ID}").status_code == 404
    assert auth_client.put(f"/api/products/{HUGE_ID}", json={"stock": 5}).status_code == 404
    assert auth_client.delete(f"/api/products/{HUGE_ID}").status_code == 404
