import csv
import io
from unittest.mock import Mock

import requests

from config import settings
from deps import get_gateway
from errors import BackendUnavailable
from tests.conftest import login


def _ok(payload):
    resp = Mock()
    resp.ok = True
    resp.json.return_value = payload
    return resp


def _new_product(**fields):
    body = {"name": "Silk Saree", "category": "Sarees", "price": 1500, "stock": 2,
            "isNew": True, "inStock": True, "sizes": ["S"], "colors": ["Red"], "variants": []}
    body.update(fields)
    return body


def _seed(client, *names):
    client.post("/api/categories/", json={"name": "Sarees"})
    ids = []
    for name in names:
        client.post("/api/products/", json=_new_product(name=name))
    for product in client.get("/api/products/").json()["products"]:
        ids.append(product["id"])
    return ids


class TestSessions:
    def test_requests_without_session_are_rejected(self, client):
        resp = client.get("/api/categories/")

        assert resp.status_code == 401

    def test_login_sets_session_cookie(self, client):
        resp = login(client, "admin", "admin-pass")

        assert resp.status_code == 200
        assert resp.json()["role"] == "ADMIN"
        assert settings.session_cookie_name in resp.cookies

    def test_bad_password(self, client):
        resp = login(client, "admin", "nope")

        assert resp.status_code == 401
        assert resp.json()["error"] == "AuthenticationFailed"

    def test_logout_clears_session(self, admin_client):
        admin_client.post("/logout")

        assert admin_client.get("/api/categories/").status_code == 401

    def test_paths_sharing_a_public_prefix_need_a_session(self, client):
        assert client.get("/login-history").status_code == 401
        assert client.get("/logout/all").status_code == 401

    def test_docs_are_public(self, client):
        assert client.get("/docs").status_code == 200
        assert client.get("/openapi.json").status_code == 200

    def test_tampered_cookie(self, client):
        client.cookies.set(settings.session_cookie_name, "not-a-token")

        assert client.get("/api/categories/").status_code == 401


class TestUsers:
    def test_me(self, editor_client):
        assert editor_client.get("/api/users/me").json()["username"] == "editor"

    def test_editor_cannot_add_users(self, editor_client):
        resp = editor_client.post("/api/users/", json={"username": "x", "password": "y"})

        assert resp.status_code == 403

    def test_admin_adds_and_removes_users(self, admin_client):
        resp = admin_client.post("/api/users/", json={"username": "clerk", "password": "pw", "role": "EDITOR"})
        assert resp.status_code == 201
        clerk = next(u for u in resp.json() if u["username"] == "clerk")

        resp = admin_client.delete(f"/api/users/{clerk['id']}")

        assert resp.status_code == 200
        assert "clerk" not in [u["username"] for u in resp.json()]

    def test_admin_cannot_remove_self(self, admin_client):
        me = admin_client.get("/api/users/me").json()

        assert admin_client.delete(f"/api/users/{me['id']}").status_code == 400

    def test_remove_unknown_user(self, admin_client):
        assert admin_client.delete("/api/users/missing").status_code == 404


class TestCategories:
    def test_create_returns_reloaded_list(self, admin_client):
        admin_client.post("/api/categories/", json={"name": "Sarees"})
        resp = admin_client.post("/api/categories/", json={"name": "Kurti"})

        assert resp.status_code == 201
        assert [c["name"] for c in resp.json()] == ["Kurti", "Sarees"]

    def test_duplicate_name(self, admin_client):
        admin_client.post("/api/categories/", json={"name": "Sarees"})

        resp = admin_client.post("/api/categories/", json={"name": "SAREES"})

        assert resp.status_code == 422
        assert resp.json()["detail"] == "Category already exists."

    def test_rename_and_delete(self, admin_client):
        [created] = admin_client.post("/api/categories/", json={"name": "Sare"}).json()

        renamed = admin_client.put(f"/api/categories/{created['id']}", json={"name": "Sarees"})
        assert [c["name"] for c in renamed.json()] == ["Sarees"]

        assert admin_client.delete(f"/api/categories/{created['id']}").json() == []

    def test_report_lists_orphaned_labels(self, admin_client):
        [created] = admin_client.post("/api/categories/", json={"name": "Sarees"}).json()
        admin_client.post("/api/products/", json=_new_product())
        admin_client.delete(f"/api/categories/{created['id']}")

        report = admin_client.get("/api/categories/report").json()

        assert report["known_categories"] == []
        assert list(report["dangling"]) == ["Sarees"]


class TestProducts:
    def test_create_and_list(self, editor_client):
        editor_client.post("/api/categories/", json={"name": "Sarees"})

        resp = editor_client.post("/api/products/", json=_new_product(variants=[
            {"size": "S", "color": "Red", "price": 1200, "stock": 1},
            {"size": "M", "color": "Red", "price": 1400, "stock": 2},
        ]))

        assert resp.status_code == 201
        [item] = resp.json()["products"]
        assert item["price_range"] == "1200.00 - 1400.00"
        assert item["total_stock"] == 3
        assert item["available"] is True
        assert item["currency"] == "BDT"
        assert item["inStock"] is True

    def test_invalid_price(self, editor_client):
        editor_client.post("/api/categories/", json={"name": "Sarees"})

        resp = editor_client.post("/api/products/", json=_new_product(price=0))

        assert resp.status_code == 422
        assert resp.json()["detail"] == "Please set a valid Price."

    def test_update_replaces_variants(self, editor_client):
        [pid] = _seed(editor_client, "Silk Saree")

        resp = editor_client.put(f"/api/products/{pid}", json=_new_product(
            name="Cotton Saree", variants=[{"size": "L", "color": "Green", "price": 900, "stock": 5}]))

        [item] = resp.json()["products"]
        assert item["name"] == "Cotton Saree"
        assert [(v["size"], v["color"]) for v in item["variants"]] == [("L", "Green")]

    def test_search(self, editor_client):
        _seed(editor_client, "Silk Saree", "Cotton Saree")

        resp = editor_client.get("/api/products/", params={"search": "silk"})

        assert [p["name"] for p in resp.json()["products"]] == ["Silk Saree"]

    def test_delete_with_image_purge(self, editor_client, upload_session):
        editor_client.post("/api/categories/", json={"name": "Sarees"})
        editor_client.post("/api/products/", json=_new_product(
            images=["https://res.cloudinary.com/demo/image/upload/v1/a.jpg"]))
        [pid] = [p["id"] for p in editor_client.get("/api/products/").json()["products"]]
        upload_session.post.return_value = _ok({"result": "not found"})

        resp = editor_client.delete(f"/api/products/{pid}", params={"purge_images": True})

        assert resp.status_code == 200
        assert resp.json()["total_count"] == 0
        assert upload_session.post.call_args.kwargs["data"]["public_id"] == "a"

    def test_bulk_delete(self, editor_client):
        ids = _seed(editor_client, "A", "B", "C")

        resp = editor_client.post("/api/products/bulk/delete", json={"ids": ids[:2]})

        assert resp.json()["total_count"] == 1

    def test_bulk_stock(self, editor_client):
        ids = _seed(editor_client, "A", "B")

        resp = editor_client.post("/api/products/bulk/stock", json={"ids": ids, "inStock": False})

        products = resp.json()["products"]
        assert [p["inStock"] for p in products] == [False, False]
        assert [p["available"] for p in products] == [False, False]

    def test_export_selected_rows(self, editor_client):
        ids = _seed(editor_client, "A", "B")

        resp = editor_client.get("/api/products/export", params={"ids": [ids[1]]})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "putimach_inventory_" in resp.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert len(rows) == 2
        assert rows[1][0] == str(ids[1])

    def test_export_filtered_view(self, editor_client):
        _seed(editor_client, "Silk Saree", "Cotton Saree")

        resp = editor_client.get("/api/products/export", params={"search": "cotton"})

        rows = list(csv.reader(io.StringIO(resp.text)))
        assert [r[1] for r in rows[1:]] == ["Cotton Saree"]

    def test_store_unavailable(self, client):
        def unavailable():
            raise BackendUnavailable("Supabase not configured")

        login(client, "editor", "editor-pass")
        client.app.dependency_overrides[get_gateway] = unavailable

        resp = client.get("/api/products/")

        assert resp.status_code == 503
        assert resp.json()["error"] == "BackendUnavailable"


class TestImages:
    def test_upload_returns_urls_in_order(self, editor_client, upload_session):
        upload_session.post.side_effect = lambda *a, **kw: _ok(
            {"secure_url": f"https://res/{kw['files']['file'][0]}"})

        resp = editor_client.post("/api/images/", files=[
            ("files", (f"{i}.jpg", b"img", "image/jpeg")) for i in range(4)
        ])

        assert resp.status_code == 200
        assert resp.json()["urls"] == [f"https://res/{i}.jpg" for i in range(4)]
        assert resp.json()["warning"] is None

    def test_partial_failure_is_a_warning(self, editor_client, upload_session):
        def post(*args, **kwargs):
            name = kwargs["files"]["file"][0]
            if name == "bad.jpg":
                resp = Mock(ok=False)
                resp.json.return_value = {"error": {"message": "Invalid image file"}}
                return resp
            return _ok({"secure_url": f"https://res/{name}"})

        upload_session.post.side_effect = post

        resp = editor_client.post("/api/images/", files=[
            ("files", ("good.jpg", b"img", "image/jpeg")),
            ("files", ("bad.jpg", b"img", "image/jpeg")),
        ])

        body = resp.json()
        assert body["urls"] == ["https://res/good.jpg"]
        assert body["failed"] == ["bad.jpg"]
        assert body["warning"] == "1 of 2 image(s) failed to upload."

    def test_all_failed(self, editor_client, upload_session):
        upload_session.post.side_effect = requests.exceptions.ConnectionError("offline")

        resp = editor_client.post("/api/images/", files=[("files", ("a.jpg", b"img", "image/jpeg"))])

        assert resp.status_code == 502
        assert resp.json()["error"] == "PartialUploadFailure"

    def test_delete_reports_unconfirmed(self, editor_client, upload_session):
        upload_session.post.return_value = _ok({"result": "not found"})

        resp = editor_client.delete("/api/images/", params={"url": "https://res/x.jpg"})

        assert resp.json() == {"url": "https://res/x.jpg", "deleted": False}
