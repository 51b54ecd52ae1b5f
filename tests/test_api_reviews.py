"""
HTTP tests for perfume comments.
"""

import pytest


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def perfume_id(client, admin_token):
    """A perfume seeded by the administrator."""
    response = client.post("/perfumes", json={"name": "Santal 33"}, headers=bearer(admin_token))
    assert response.status_code == 201, response.text
    return response.json()["data"]["perfume"]["id"]


def _comment(client, perfume_id, token, rating=4, content="Lovely dry-down"):
    return client.post(
        f"/perfumes/{perfume_id}/comments",
        json={"rating": rating, "content": content},
        headers=bearer(token),
    )


class TestCatalog:
    def test_members_cannot_add_perfumes(self, client, register):
        _, token = register()

        response = client.post("/perfumes", json={"name": "Santal 33"}, headers=bearer(token))

        assert response.status_code == 403
        assert response.json()["message"] == "Missing permission: catalog.manage"


class TestComments:
    def test_comment_lifecycle(self, client, register, admin_token, perfume_id):
        _, ana = register(email="ana@example.com")
        _, bob = register(email="bob@example.com", name="Bob")

        created = _comment(client, perfume_id, ana)
        assert created.status_code == 201
        comment_id = created.json()["data"]["comment"]["id"]

        # One per member per perfume
        second = _comment(client, perfume_id, ana, rating=1, content="Changed my mind")
        assert second.status_code == 400
        assert second.json()["message"] == "You have already commented on this perfume"

        # Admins never review
        by_admin = _comment(client, perfume_id, admin_token)
        assert by_admin.status_code == 403

        # Only the author edits or deletes, admins included
        url = f"/perfumes/{perfume_id}/comments/{comment_id}"
        edit = {"rating": 1, "content": "Vandalised"}
        assert client.put(url, json=edit, headers=bearer(bob)).status_code == 403
        assert client.put(url, json=edit, headers=bearer(admin_token)).status_code == 403
        assert client.delete(url, headers=bearer(bob)).status_code == 403
        assert client.delete(url, headers=bearer(admin_token)).status_code == 403

        updated = client.put(url, json={"rating": 5, "content": "Grew on me"}, headers=bearer(ana))
        assert updated.status_code == 200
        assert updated.json()["data"]["comment"]["rating"] == 5

        assert client.delete(url, headers=bearer(ana)).status_code == 200

        # Back to no review: the member may comment again
        assert _comment(client, perfume_id, ana).status_code == 201

    def test_comments_are_public(self, client, register, perfume_id):
        _, ana = register(email="ana@example.com")
        _, bob = register(email="bob@example.com", name="Bob")
        _comment(client, perfume_id, ana)
        _comment(client, perfume_id, bob, rating=2, content="Too much sandalwood")

        response = client.get(f"/perfumes/{perfume_id}/comments")

        assert response.status_code == 200
        assert response.json()["data"]["count"] == 2

    def test_own_reviews(self, client, register, admin_token, perfume_id):
        _, ana = register()
        _comment(client, perfume_id, ana)

        mine = client.get("/members/profile/reviews", headers=bearer(ana))
        assert [r["perfumeId"] for r in mine.json()["data"]["reviews"]] == [perfume_id]

        admins = client.get("/members/profile/reviews", headers=bearer(admin_token))
        assert admins.json()["data"]["count"] == 0

    def test_requires_login(self, client, perfume_id):
        response = client.post(f"/perfumes/{perfume_id}/comments", json={"rating": 4, "content": "Lovely dry-down"})
        assert response.status_code == 401

    @pytest.mark.parametrize("rating, content", [(0, "Lovely dry-down"), (6, "Lovely dry-down"), (4, "  ok  ")])
    def test_validation(self, client, register, perfume_id, rating, content):
        _, ana = register()

        response = _comment(client, perfume_id, ana, rating=rating, content=content)

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    def test_unknown_perfume(self, client, register):
        _, ana = register()

        response = _comment(client, "perfume_missing", ana)

        assert response.status_code == 404
        assert response.json()["message"] == "Perfume not found"
