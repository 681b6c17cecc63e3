"""Integration tests for the review endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.utils.globals import current_domain
from storefront.api import catalog_router, register_error_handlers, review_router
from storefront.product.product import Product

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
AUTHOR = {"X-User-Id": "user-001"}
READER = {"X-User-Id": "user-002"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(catalog_router)
    app.include_router(review_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def product_id(add_product):
    return add_product()


def _post_review(client, product_id, headers=AUTHOR, **overrides):
    body = {
        "product_id": product_id,
        "rating": 5,
        "title": "Beautiful fabric",
        "comment": "The colours held up after several washes.",
    }
    body.update(overrides)
    return client.post("/reviews", json=body, headers=headers)


def _submit(client, product_id, **kwargs):
    response = _post_review(client, product_id, **kwargs)
    assert response.status_code == 201
    return response.json()["id"]


class TestCreateReviewAPI:
    def test_create_returns_201(self, client, product_id):
        response = _post_review(client, product_id)
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "approved"
        assert data["user_id"] == "user-001"
        assert data["verified"] is False

    def test_rating_is_reflected_on_product(self, client, product_id):
        _submit(client, product_id, rating=4)
        product = client.get(f"/products/{product_id}").json()
        assert product["rating"] == 4.0
        assert product["review_count"] == 1

    def test_guest_review(self, client, product_id):
        response = _post_review(client, product_id, headers={}, guest_name="Awa", guest_email="awa@example.com")
        assert response.status_code == 201
        assert response.json()["guest_name"] == "Awa"
        assert response.json()["user_id"] is None

    def test_anonymous_without_name_is_400(self, client, product_id):
        assert _post_review(client, product_id, headers={}).status_code == 400

    def test_duplicate_is_400(self, client, product_id):
        _submit(client, product_id)
        assert _post_review(client, product_id).status_code == 400

    def test_unknown_product_is_404(self, client):
        assert _post_review(client, "ghost").status_code == 404


class TestProductReviewsAPI:
    def test_lists_approved_with_statistics(self, client, product_id):
        _submit(client, product_id, rating=5)
        _submit(client, product_id, headers=READER, rating=4)

        response = client.get(f"/reviews/product/{product_id}", params={"sort": "lowest"})

        assert response.status_code == 200
        data = response.json()
        assert [r["rating"] for r in data["items"]] == [4, 5]
        assert data["statistics"]["average_rating"] == 4.5
        assert data["statistics"]["distribution"]["5"] == 1
        assert data["pagination"]["total"] == 2

    def test_unknown_product_is_404(self, client):
        assert client.get("/reviews/product/ghost").status_code == 404


class TestEditReviewAPI:
    def test_author_edit_goes_back_to_pending(self, client, product_id):
        review_id = _submit(client, product_id)
        response = client.put(f"/reviews/{review_id}", json={"title": "Updated title"}, headers=AUTHOR)
        assert response.status_code == 200
        assert response.json()["status"] == "pending"
        assert response.json()["is_edited"] is True

    def test_other_user_is_403(self, client, product_id):
        review_id = _submit(client, product_id)
        response = client.put(f"/reviews/{review_id}", json={"title": "Hacked"}, headers=READER)
        assert response.status_code == 403

    def test_anonymous_is_401(self, client, product_id):
        review_id = _submit(client, product_id)
        assert client.put(f"/reviews/{review_id}", json={"title": "Who"}).status_code == 401


class TestModerationAPI:
    def test_admin_rejects(self, client, product_id):
        review_id = _submit(client, product_id)
        response = client.put(f"/reviews/{review_id}/status", json={"status": "rejected"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        assert current_domain.repository_for(Product).find_by_id(product_id).review_count == 0

    def test_non_admin_is_403(self, client, product_id):
        review_id = _submit(client, product_id)
        response = client.put(f"/reviews/{review_id}/status", json={"status": "rejected"}, headers=AUTHOR)
        assert response.status_code == 403

    def test_admin_listing(self, client, product_id):
        _submit(client, product_id)
        response = client.get("/reviews", params={"status": "approved"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["total"] == 1


class TestReactionsAPI:
    def test_toggle_helpful(self, client, product_id):
        review_id = _submit(client, product_id)
        first = client.post(f"/reviews/{review_id}/helpful", headers=READER)
        second = client.post(f"/reviews/{review_id}/helpful", headers=READER)
        assert first.json() == {"helpful": 1, "action": "added"}
        assert second.json() == {"helpful": 0, "action": "removed"}

    def test_toggle_like_requires_identity(self, client, product_id):
        review_id = _submit(client, product_id)
        assert client.post(f"/reviews/{review_id}/like").status_code == 401

    def test_interactions(self, client, product_id):
        review_id = _submit(client, product_id)
        client.post(f"/reviews/{review_id}/like", headers=READER)
        response = client.get("/reviews/interactions", headers=READER)
        assert response.json() == {"helpful_reviews": [], "liked_reviews": [review_id]}

    def test_report(self, client, product_id):
        review_id = _submit(client, product_id)
        response = client.post(f"/reviews/{review_id}/report", json={"reason": "Spam"}, headers=READER)
        assert response.status_code == 200
        assert response.json() == {"reports_count": 1}

    def test_report_without_reason_is_400(self, client, product_id):
        review_id = _submit(client, product_id)
        response = client.post(f"/reviews/{review_id}/report", json={}, headers=READER)
        assert response.status_code == 400


class TestDeleteReviewAPI:
    def test_author_deletes(self, client, product_id):
        review_id = _submit(client, product_id)
        response = client.delete(f"/reviews/{review_id}", headers=AUTHOR)
        assert response.status_code == 200
        assert response.json() == {"status": "deleted"}

    def test_admin_deletes(self, client, product_id):
        review_id = _submit(client, product_id)
        assert client.delete(f"/reviews/{review_id}", headers=ADMIN).status_code == 200

    def test_other_user_is_403(self, client, product_id):
        review_id = _submit(client, product_id)
        assert client.delete(f"/reviews/{review_id}", headers=READER).status_code == 403

    def test_missing_review_is_404(self, client):
        response = client.delete("/reviews/ghost", headers=ADMIN)
        assert response.status_code == 404
        assert response.json() == {"error": {"review_id": ["Review ghost not found"]}}
