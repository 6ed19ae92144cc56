"""Integration tests for book reviews."""

import pytest


@pytest.fixture
def book_id(client, user_headers) -> int:
    resp = client.post("/api/books", headers=user_headers, json={"title": "Dune"})
    return resp.json()["book"]["id"]


@pytest.fixture
def review(client, user_headers, book_id) -> dict:
    resp = client.post(
        f"/api/books/{book_id}/reviews",
        headers=user_headers,
        json={"rating": 4, "comment": "Sprawling and strange."},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["review"]


class TestCreateReview:
    """POST /api/books/{id}/reviews."""

    def test_authenticated_review_uses_account_name(self, review) -> None:
        assert review["username"] == "Reader"
        assert review["user_name"] == "Reader"
        assert review["book_title"] == "Dune"
        assert isinstance(review["userId"], int)

    def test_anonymous_review_needs_username(self, client, book_id) -> None:
        resp = client.post(f"/api/books/{book_id}/reviews", json={"rating": 3, "comment": "Fine"})

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "username_required"

    def test_anonymous_review(self, client, book_id) -> None:
        resp = client.post(
            f"/api/books/{book_id}/reviews",
            json={"rating": 5, "comment": "Loved it", "username": "guest"},
        )

        assert resp.status_code == 201
        assert resp.json()["review"]["username"] == "guest"
        assert resp.json()["review"]["userId"] is None

    @pytest.mark.parametrize("rating", [0, 6, None])
    def test_rating_must_be_between_one_and_five(self, client, user_headers, book_id, rating) -> None:
        resp = client.post(
            f"/api/books/{book_id}/reviews",
            headers=user_headers,
            json={"rating": rating, "comment": "Hmm"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_rating"

    def test_comment_required(self, client, user_headers, book_id) -> None:
        resp = client.post(f"/api/books/{book_id}/reviews", headers=user_headers, json={"rating": 3, "comment": " "})

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "comment_required"

    def test_review_for_missing_book(self, client, user_headers) -> None:
        resp = client.post("/api/books/999/reviews", headers=user_headers, json={"rating": 3, "comment": "x"})

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "book_not_found"

    def test_non_numeric_rating_is_invalid_request(self, client, book_id) -> None:
        resp = client.post(
            f"/api/books/{book_id}/reviews",
            json={"rating": "great", "comment": "x", "username": "guest"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_request"


class TestReadReviews:
    """Listing and single review lookup."""

    def test_list_newest_first(self, client, user_headers, book_id, review) -> None:
        client.post(
            f"/api/books/{book_id}/reviews",
            json={"rating": 2, "comment": "Too long", "username": "guest"},
        )

        resp = client.get(f"/api/books/{book_id}/reviews")

        assert resp.status_code == 200
        assert [r["comment"] for r in resp.json()] == ["Too long", "Sprawling and strange."]

    def test_get_review(self, client, review) -> None:
        resp = client.get(f"/api/reviews/{review['id']}")

        assert resp.status_code == 200
        assert resp.json()["review"]["rating"] == 4

    def test_get_missing_review(self, client) -> None:
        resp = client.get("/api/reviews/999")

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "review_not_found"


class TestModifyReviews:
    """Owner/admin checks on PUT and DELETE."""

    def test_owner_can_update(self, client, user_headers, review) -> None:
        resp = client.put(f"/api/reviews/{review['id']}", headers=user_headers, json={"rating": 5})

        assert resp.status_code == 200
        assert resp.json()["review"]["rating"] == 5
        assert resp.json()["review"]["comment"] == "Sprawling and strange."

    def test_update_needs_a_field(self, client, user_headers, review) -> None:
        resp = client.put(f"/api/reviews/{review['id']}", headers=user_headers, json={})

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "no_fields_to_update"

    def test_other_user_cannot_update(self, client, review, create_user, login) -> None:
        other = create_user("other@example.com", name="Other")

        resp = client.put(f"/api/reviews/{review['id']}", headers=login(other["email"]), json={"rating": 1})

        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "review_forbidden"

    def test_anonymous_cannot_delete(self, client, review) -> None:
        assert client.delete(f"/api/reviews/{review['id']}").status_code == 403

    def test_admin_can_delete_any_review(self, client, review, admin_headers) -> None:
        resp = client.delete(f"/api/reviews/{review['id']}", headers=admin_headers)

        assert resp.status_code == 204
        assert client.get(f"/api/reviews/{review['id']}").status_code == 404

    def test_owner_deleting_account_keeps_review(self, client, user_headers, review) -> None:
        client.request("DELETE", "/api/auth/delete-account", headers=user_headers, json={"password": "secret123"})

        kept = client.get(f"/api/reviews/{review['id']}").json()["review"]

        assert kept["userId"] is None
        assert kept["username"] == "Reader"
