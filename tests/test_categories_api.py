import os

from conftest import image_files


def test_duplicate_slug_rejected(client, admin_headers):
    r = client.post("/api/categories", data={"name": "Smart Watch", "slug": "smart-watch"}, headers=admin_headers)
    assert r.status_code == 201
    r = client.post("/api/categories", data={"name": "Smart Watch 2", "slug": "smart-watch"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Category with this slug already exists"}


def test_create_requires_name_and_slug(client, admin_headers):
    r = client.post("/api/categories", data={}, headers=admin_headers)
    assert r.status_code == 400
    assert {e["message"] for e in r.json()["errors"]} == {"Category name is required", "Category slug is required"}


def test_list_sorted_by_name_and_get(client, admin_headers):
    client.post("/api/categories", data={"name": "Quartz", "slug": "quartz"}, headers=admin_headers)
    created = client.post("/api/categories", data={"name": "Azan", "slug": "azan"}, headers=admin_headers).json()
    r = client.get("/api/categories")
    assert [c["slug"] for c in r.json()["categories"]] == ["azan", "quartz"]

    r = client.get(f"/api/categories/{created['category']['id']}")
    assert r.json()["category"]["name"] == "Azan"
    assert client.get("/api/categories/999").status_code == 404


def test_update_replaces_image_file(client, admin_headers, settings):
    created = client.post(
        "/api/categories",
        data={"name": "Kids", "slug": "kids"},
        files=image_files(1, field="image"),
        headers=admin_headers,
    ).json()["category"]
    old_file = os.path.join(settings.upload_dir, created["image_url"][len("/uploads/"):])
    assert os.path.exists(old_file)

    r = client.put(
        f"/api/categories/{created['id']}",
        data={"description": "For children"},
        files=image_files(1, field="image", ext="jpg", content_type="image/jpeg"),
        headers=admin_headers,
    )
    category = r.json()["category"]
    assert category["slug"] == "kids"
    assert category["description"] == "For children"
    assert category["image_url"].endswith(".jpg")
    assert not os.path.exists(old_file)


def test_update_slug_collision(client, admin_headers):
    client.post("/api/categories", data={"name": "A", "slug": "a"}, headers=admin_headers)
    b = client.post("/api/categories", data={"name": "B", "slug": "b"}, headers=admin_headers).json()["category"]
    r = client.put(f"/api/categories/{b['id']}", data={"slug": "a"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Category with this slug already exists"


def test_delete_blocked_while_products_reference_it(client, admin_headers, category):
    for model in ("W1", "W2", "W3"):
        client.post(
            "/api/products",
            data={"name": f"Watch {model}", "model_number": model, "category_id": str(category.id),
                  "description": "d"},
            headers=admin_headers,
        )
    r = client.delete(f"/api/categories/{category.id}", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == (
        "Cannot delete category with 3 products. Please move or delete the products first."
    )


def test_delete_empty_category(client, admin_headers, settings):
    created = client.post(
        "/api/categories",
        data={"name": "LED", "slug": "led"},
        files=image_files(1, field="image"),
        headers=admin_headers,
    ).json()["category"]
    path = os.path.join(settings.upload_dir, created["image_url"][len("/uploads/"):])

    r = client.delete(f"/api/categories/{created['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert not os.path.exists(path)
    assert client.get(f"/api/categories/{created['id']}").status_code == 404


def test_category_products_by_slug(client, admin_headers, category):
    client.post(
        "/api/products",
        data={"name": "Pulse", "model_number": "P1", "category_id": str(category.id), "description": "d"},
        headers=admin_headers,
    )
    r = client.get("/api/categories/smart-watch/products", params={"limit": 5})
    body = r.json()
    assert body["category"]["slug"] == "smart-watch"
    assert [p["name"] for p in body["products"]] == ["Pulse"]
    assert body["pagination"]["totalPages"] == 1
    assert client.get("/api/categories/unknown/products").status_code == 404
