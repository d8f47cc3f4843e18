"""
HTTP boundary tests: status codes and envelopes.
"""
import pytest

from app.config import get_settings

API = get_settings().API_PREFIX


@pytest.mark.integration
class TestAuthentication:

    def test_missing_token_is_401_before_validation(self, client) -> None:
        """An empty body would be a 400, but the missing token wins."""
        response = client.post(f"{API}/projects", json={})

        assert response.status_code == 401
        assert response.json() == {"ok": False, "kind": "unauthenticated", "message": "Not authenticated"}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_undecodable_body_without_token_is_401(self, client) -> None:
        """A body that is not even JSON still loses to the missing token."""
        response = client.post(
            f"{API}/projects",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 401
        assert response.json()["kind"] == "unauthenticated"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_undecodable_body_with_bad_token_is_401(self, client) -> None:
        response = client.put(
            f"{API}/tasks/some-task",
            content=b"{not json",
            headers={"Content-Type": "application/json", "Authorization": "Bearer nonsense"},
        )
        assert response.status_code == 401

    def test_undecodable_body_with_valid_token_is_400(self, client, two_tenants, headers) -> None:
        response = client.post(
            f"{API}/projects",
            content=b"{not json",
            headers={"Content-Type": "application/json", **headers(two_tenants["a"]["admin"])},
        )
        assert response.status_code == 400
        assert response.json()["kind"] == "validation_error"

    def test_undecodable_login_body_is_400(self, client) -> None:
        """Public routes have no credential to check first."""
        response = client.post(
            f"{API}/auth/login",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_garbage_token(self, client) -> None:
        response = client.get(f"{API}/tasks/my", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401
        assert response.json()["kind"] == "unauthenticated"

    def test_register_login_me_logout(self, client) -> None:
        response = client.post(f"{API}/auth/register-tenant", json={
            "tenant_name": "Acme Corp",
            "slug": "acme",
            "email": "ada@acme.com",
            "password": "securepassword123",
            "full_name": "Ada",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["ok"] is True
        assert body["data"]["user"]["role"] == "tenant_admin"
        assert body["data"]["user"]["tenant_id"] == body["data"]["tenant"]["id"]
        assert "hashed_password" not in body["data"]["user"]

        response = client.post(f"{API}/auth/login", json={"email": "ada@acme.com", "password": "securepassword123"})
        assert response.status_code == 200
        token = response.json()["data"]["token"]["access_token"]
        auth = {"Authorization": f"Bearer {token}"}

        me = client.get(f"{API}/auth/me", headers=auth)
        assert me.status_code == 200
        assert me.json()["data"]["email"] == "ada@acme.com"

        bye = client.post(f"{API}/auth/logout", headers=auth)
        assert bye.json() == {"ok": True, "data": None, "message": "Logged out"}

    def test_wrong_password_is_generic(self, client, factory) -> None:
        user = factory.user(factory.tenant())
        response = client.post(f"{API}/auth/login", json={"email": user.email, "password": "wrong-password"})
        unknown = client.post(f"{API}/auth/login", json={"email": "nobody@acme.com", "password": "wrong-password"})

        assert response.status_code == unknown.status_code == 401
        assert response.json()["message"] == unknown.json()["message"] == "Invalid credentials"


@pytest.mark.integration
class TestEnvelopes:

    def test_list_payload(self, client, two_tenants, headers) -> None:
        a = two_tenants["a"]
        response = client.get(f"{API}/projects", headers=headers(a["alice"]), params={"page_size": 5})

        assert response.status_code == 200
        data = response.json()["data"]
        assert set(data) == {"items", "total", "page", "page_size"}
        assert data["total"] == 1
        assert data["page_size"] == 5
        assert data["items"][0]["tenant_id"] == a["tenant"].id

    def test_validation_error_is_400(self, client, two_tenants, headers) -> None:
        response = client.post(f"{API}/projects", headers=headers(two_tenants["a"]["admin"]), json={"name": ""})

        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert body["kind"] == "validation_error"

    def test_cross_tenant_read_is_404(self, client, two_tenants, headers) -> None:
        response = client.get(
            f"{API}/tasks/{two_tenants['b']['alice_task'].id}",
            headers=headers(two_tenants["a"]["admin"]),
        )
        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    def test_wrong_method_is_a_client_error(self, client) -> None:
        response = client.patch(f"{API}/projects")
        assert response.status_code == 405
        assert response.json() == {"ok": False, "kind": "validation_error", "message": "Method Not Allowed"}

    def test_unknown_route(self, client) -> None:
        response = client.get(f"{API}/nope")
        assert response.status_code == 404
        assert response.json()["ok"] is False


@pytest.mark.integration
class TestTaskRoutes:

    def test_spoofed_tenant_create_is_201_in_own_tenant(self, client, two_tenants, headers) -> None:
        a, b = two_tenants["a"], two_tenants["b"]

        response = client.post(
            f"{API}/projects/{a['project'].id}/tasks",
            headers=headers(a["alice"]),
            json={"title": "Quarterly report", "tenant_id": b["tenant"].id},
        )

        assert response.status_code == 201
        assert response.json()["data"]["tenant_id"] == a["tenant"].id

    def test_user_patching_title_is_403(self, client, two_tenants, headers) -> None:
        a = two_tenants["a"]
        response = client.put(
            f"{API}/tasks/{a['alice_task'].id}",
            headers=headers(a["alice"]),
            json={"title": "Renamed"},
        )
        assert response.status_code == 403
        assert response.json()["kind"] == "forbidden"

    def test_status_patch_twice(self, client, two_tenants, headers) -> None:
        a = two_tenants["a"]
        url = f"{API}/tasks/{a['alice_task'].id}/status"

        first = client.patch(url, headers=headers(a["alice"]), json={"status": "done"})
        second = client.patch(url, headers=headers(a["alice"]), json={"status": "done"})

        assert first.status_code == second.status_code == 200
        assert first.json()["data"] == second.json()["data"]
        assert second.json()["data"]["status"] == "done"

    def test_unknown_status_is_400(self, client, two_tenants, headers) -> None:
        a = two_tenants["a"]
        response = client.patch(
            f"{API}/tasks/{a['alice_task'].id}/status",
            headers=headers(a["alice"]),
            json={"status": "finished"},
        )
        assert response.status_code == 400

    def test_user_delete_is_403(self, client, two_tenants, headers) -> None:
        a = two_tenants["a"]
        response = client.delete(f"{API}/tasks/{a['alice_task'].id}", headers=headers(a["alice"]))
        assert response.status_code == 403

    def test_my_tasks(self, client, two_tenants, headers) -> None:
        a = two_tenants["a"]
        response = client.get(f"{API}/tasks/my", headers=headers(a["alice"]))
        items = response.json()["data"]["items"]
        assert [item["id"] for item in items] == [a["alice_task"].id]

    def test_all_tasks_for_super_admin(self, client, two_tenants, headers) -> None:
        response = client.get(f"{API}/tasks/all", headers=headers(two_tenants["root"]))
        assert response.json()["data"]["total"] == 4

        denied = client.get(f"{API}/tasks/all", headers=headers(two_tenants["a"]["admin"]))
        assert denied.status_code == 403


@pytest.mark.integration
class TestProjectRoutes:

    def test_delete_with_tasks_is_409_then_cascade(self, client, two_tenants, headers) -> None:
        a = two_tenants["a"]
        url = f"{API}/projects/{a['project'].id}"

        blocked = client.delete(url, headers=headers(a["admin"]))
        assert blocked.status_code == 409
        assert blocked.json()["kind"] == "conflict"

        removed = client.delete(url, headers=headers(a["admin"]), params={"cascade": "true"})
        assert removed.status_code == 200
        assert removed.json()["data"] == {"tasks_removed": 2}

        assert client.get(url, headers=headers(a["admin"])).status_code == 404

    def test_admin_creates_project(self, client, two_tenants, headers) -> None:
        a = two_tenants["a"]
        response = client.post(f"{API}/projects", headers=headers(a["admin"]), json={"name": "Website"})

        assert response.status_code == 201
        assert response.json()["message"] == "Project created"
        assert response.json()["data"]["owner_id"] == a["admin"].id


@pytest.mark.integration
class TestTenantRoutes:

    def test_tenant_admin_adds_user(self, client, two_tenants, headers) -> None:
        a = two_tenants["a"]
        response = client.post(
            f"{API}/tenants/{a['tenant'].id}/users",
            headers=headers(a["admin"]),
            json={"email": "intern@acme.com", "password": "longenough1", "role": "user"},
        )
        assert response.status_code == 201
        assert response.json()["data"]["tenant_id"] == a["tenant"].id

    def test_escalation_to_super_admin_is_403(self, client, two_tenants, headers) -> None:
        a = two_tenants["a"]
        response = client.put(
            f"{API}/users/{a['alice'].id}",
            headers=headers(a["admin"]),
            json={"role": "super_admin"},
        )
        assert response.status_code == 403

    def test_health(self, client) -> None:
        assert client.get("/health").json()["status"] == "healthy"
