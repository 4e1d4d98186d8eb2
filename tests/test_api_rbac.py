"""HTTP tests for permission gates on the role and user administration endpoints."""

from app.models import Permission
from app.services.permissions import LIST_USERS
from tests.support import ADMIN_ROLE_ID, ApiTestCase, auth_headers


class TestLivePermissions(ApiTestCase):
    """Role edits reach tokens that were issued before the edit."""

    def test_auditor_gains_access_without_new_token(self) -> None:
        admin = auth_headers(self.make_user("admin@example.com", role_id=ADMIN_ROLE_ID).token)
        resp = self.client.post(
            "/api/v1/roles",
            json={"name": "Auditor", "description": "Read-only reviewer"},
            headers=admin,
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        auditor_role_id = resp.json()["role"]["id"]

        auditor = auth_headers(self.make_user("auditor@example.com", role_id=auditor_role_id).token)
        self.assertEqual(self.client.get("/api/v1/users", headers=auditor).status_code, 403)

        list_users = self.db.query(Permission).filter(Permission.code == LIST_USERS).one()
        resp = self.client.put(
            f"/api/v1/roles/{auditor_role_id}",
            json={"permissionIds": [list_users.id]},
            headers=admin,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual([p["code"] for p in resp.json()["role"]["permissions"]], [LIST_USERS])

        resp = self.client.get("/api/v1/users", headers=auditor)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["totalItems"], 2)
        self.assertEqual(self.client.get("/api/v1/auth/me", headers=auditor).json()["permissions"], [LIST_USERS])

        self.client.delete(f"/api/v1/roles/{auditor_role_id}/permissions/{list_users.id}", headers=admin)
        self.assertEqual(self.client.get("/api/v1/users", headers=auditor).status_code, 403)


class TestRoleEndpoints(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = auth_headers(self.make_user("admin@example.com", role_id=ADMIN_ROLE_ID).token)
        self.user = auth_headers(self.make_user("plain@example.com").token)

    def test_reads_need_only_a_session(self) -> None:
        resp = self.client.get("/api/v1/roles", headers=self.user)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual({r["name"] for r in resp.json()}, {"Admin", "User"})
        self.assertEqual(self.client.get("/api/v1/permissions", headers=self.user).status_code, 200)
        self.assertEqual(self.client.get("/api/v1/roles").status_code, 401)

    def test_writes_need_manage_roles(self) -> None:
        resp = self.client.post("/api/v1/roles", json={"name": "Sneaky"}, headers=self.user)
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(
            resp.json()["detail"], "You do not have the required permissions to access this resource"
        )

    def test_grant_and_delete(self) -> None:
        created = self.client.post("/api/v1/roles", json={"name": "Exporter"}, headers=self.admin)
        role_id = created.json()["role"]["id"]
        perm = self.client.get("/api/v1/permissions", headers=self.admin).json()[0]
        resp = self.client.post(
            f"/api/v1/roles/{role_id}/permissions",
            json={
                "permissions": [
                    {"code": "EXPORT_REPORTS", "featureId": perm["featureId"], "permissionActionId": 1},
                ]
            },
            headers=self.admin,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual([p["code"] for p in resp.json()["createdPermissions"]], ["EXPORT_REPORTS"])

        listed = self.client.get(f"/api/v1/roles/{role_id}/permissions", headers=self.admin).json()
        self.assertEqual([p["code"] for p in listed], ["EXPORT_REPORTS"])

        self.assertEqual(self.client.delete(f"/api/v1/roles/{role_id}", headers=self.admin).status_code, 200)
        self.assertEqual(self.client.get(f"/api/v1/roles/{role_id}", headers=self.admin).status_code, 404)

    def test_role_with_users_cannot_be_deleted(self) -> None:
        resp = self.client.delete("/api/v1/roles/2", headers=self.admin)
        self.assertEqual(resp.status_code, 409)


class TestUserEndpoints(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = auth_headers(self.make_user("admin@example.com", role_id=ADMIN_ROLE_ID).token)

    def test_create_list_update_delete(self) -> None:
        resp = self.client.post(
            "/api/v1/users",
            json={
                "email": "staff@example.com",
                "password": "Staff-pass-1",
                "firstName": "Sam",
                "lastName": "Staff",
                "roleId": 2,
            },
            headers=self.admin,
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        user_id = resp.json()["user"]["id"]
        self.login("staff@example.com", "Staff-pass-1")

        page = self.client.get("/api/v1/users?search=staff&limit=10", headers=self.admin).json()
        self.assertEqual(page["totalItems"], 1)
        self.assertEqual(page["totalPages"], 1)
        self.assertEqual(page["users"][0]["email"], "staff@example.com")

        resp = self.client.put(f"/api/v1/users/{user_id}", json={"lastName": "Renamed"}, headers=self.admin)
        self.assertEqual(resp.json()["lastName"], "Renamed")

        resp = self.client.put(
            f"/api/v1/users/{user_id}", json={"email": "admin@example.com"}, headers=self.admin
        )
        self.assertEqual(resp.status_code, 409)

        self.assertEqual(self.client.delete(f"/api/v1/users/{user_id}", headers=self.admin).status_code, 200)
        self.assertEqual(self.client.get(f"/api/v1/users/{user_id}", headers=self.admin).status_code, 404)
        resp = self.client.post(
            "/api/v1/auth/login", json={"loginName": "staff@example.com", "password": "Staff-pass-1"}
        )
        self.assertEqual(resp.status_code, 401)

    def test_email_change_moves_login_name(self) -> None:
        resp = self.client.post(
            "/api/v1/users",
            json={
                "email": "mover@example.com",
                "password": "Mover-pass-1",
                "firstName": "Mo",
                "lastName": "Ver",
                "roleId": 2,
            },
            headers=self.admin,
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        user_id = resp.json()["user"]["id"]

        resp = self.client.put(
            f"/api/v1/users/{user_id}", json={"email": "Moved@example.com"}, headers=self.admin
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.login("moved@example.com", "Mover-pass-1")
        resp = self.client.post(
            "/api/v1/auth/login", json={"loginName": "mover@example.com", "password": "Mover-pass-1"}
        )
        self.assertEqual(resp.status_code, 401)

    def test_email_change_keeps_custom_login_name(self) -> None:
        user_id = self.make_user("custom@example.com", login_name="custom-login").user.id
        resp = self.client.put(
            f"/api/v1/users/{user_id}", json={"email": "renamed@example.com"}, headers=self.admin
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.login("custom-login")

    def test_paging_bounds(self) -> None:
        self.assertEqual(self.client.get("/api/v1/users?page=0", headers=self.admin).status_code, 400)
        self.assertEqual(self.client.get("/api/v1/users?limit=101", headers=self.admin).status_code, 400)

    def test_plain_user_is_forbidden(self) -> None:
        user = auth_headers(self.make_user("plain@example.com").token)
        self.assertEqual(self.client.get("/api/v1/users", headers=user).status_code, 403)
        self.assertEqual(self.client.delete("/api/v1/users/1", headers=user).status_code, 403)


class TestAuditorScenario(ApiTestCase):
    def test_create_user_gate_follows_role_edits(self) -> None:
        admin = auth_headers(self.make_user("admin@example.com", role_id=ADMIN_ROLE_ID).token)
        feature_id = self.client.get("/api/v1/permissions", headers=admin).json()[0]["featureId"]
        resp = self.client.post(
            "/api/v1/roles",
            json={"name": "Auditor"},
            headers=admin,
        )
        role_id = resp.json()["role"]["id"]
        self.client.post(
            f"/api/v1/roles/{role_id}/permissions",
            json={"permissions": [{"code": "VIEW_REPORTS", "featureId": feature_id, "permissionActionId": 1}]},
            headers=admin,
        )
        auditor = auth_headers(self.make_user("auditor@example.com", role_id=role_id).token)
        new_user = {
            "email": "a@x.com",
            "password": "pw12345678",
            "firstName": "A",
            "lastName": "B",
            "roleId": 2,
        }
        self.assertEqual(self.client.post("/api/v1/users", json=new_user, headers=auditor).status_code, 403)

        self.client.post(
            f"/api/v1/roles/{role_id}/permissions",
            json={"permissions": [{"code": "CREATE_USER", "featureId": feature_id, "permissionActionId": 1}]},
            headers=admin,
        )
        resp = self.client.post("/api/v1/users", json=new_user, headers=auditor)
        self.assertEqual(resp.status_code, 201, resp.text)
        self.login("a@x.com", "pw12345678")
