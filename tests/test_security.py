from datetime import timedelta
from blogcms.core.security import create_access_token, get_role

class TestRoleClaim:
    def test_role_from_user_metadata(self):
        assert get_role({"user_metadata": {"role": "admin"}}) == "admin"

    def test_role_falls_back_to_app_metadata(self):
        assert get_role({"user_metadata": {}, "app_metadata": {"role": "admin"}}) == "admin"

    def test_no_role(self):
        assert get_role({"sub": "user-1"}) is None

class TestAdminGuard:
    def test_missing_token(self, client):
        response = client.delete("/api/tags/any")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_token(self, client):
        response = client.delete("/api/tags/any", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_expired_token(self, client, token_factory):
        token = token_factory(expired=True)
        response = client.delete("/api/tags/any", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Token expired"

    def test_token_without_role(self, client, token_factory):
        token = token_factory(role=None)
        response = client.delete("/api/tags/any", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403

    def test_admin_token_passes(self, client):
        token = create_access_token({"user_metadata": {"role": "admin"}}, expires_delta=timedelta(minutes=5))
        response = client.delete("/api/tags/any", headers={"Authorization": f"Bearer {token}"})
        # past the guard, the tag itself does not exist
        assert response.status_code == 404

    def test_reads_are_public(self, client):
        assert client.get("/api/tags").status_code == 200
        assert client.get("/api/categories").status_code == 200
        assert client.get("/api/posts").status_code == 200
