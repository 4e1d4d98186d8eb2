"""Tests for role management and live permission resolution."""

from app.core.errors import ConflictError, PermissionNotFound, RoleNotFound, ValidationError
from app.models import Feature, Permission, PermissionAction, Role
from app.services import roles as role_service
from app.services.permissions import DEFAULT_PERMISSIONS, LIST_USERS, MANAGE_ROLES, resolve_permissions
from app.services.roles import PermissionGrant, seed_defaults
from tests.support import ADMIN_ROLE_ID, DEFAULT_ROLE_ID, DatabaseTestCase


class TestSeedDefaults(DatabaseTestCase):
    def test_admin_holds_every_default_permission(self) -> None:
        self.assertEqual(resolve_permissions(self.db, ADMIN_ROLE_ID), sorted(DEFAULT_PERMISSIONS))
        self.assertEqual(resolve_permissions(self.db, DEFAULT_ROLE_ID), [])

    def test_seeding_twice_is_a_no_op(self) -> None:
        seed_defaults(self.db, ADMIN_ROLE_ID, DEFAULT_ROLE_ID)
        self.assertEqual(self.db.query(Role).count(), 2)
        self.assertEqual(self.db.query(Permission).count(), len(DEFAULT_PERMISSIONS))


class TestResolvePermissions(DatabaseTestCase):
    def test_unknown_or_missing_role_has_no_permissions(self) -> None:
        self.assertEqual(resolve_permissions(self.db, 999), [])
        self.assertEqual(resolve_permissions(self.db, None), [])

    def test_role_edits_apply_immediately(self) -> None:
        role = self.make_role("Auditor")
        self.assertEqual(resolve_permissions(self.db, role.id), [])
        list_users = self.db.query(Permission).filter(Permission.code == LIST_USERS).one()
        role_service.update_role(self.db, role.id, permission_ids=[list_users.id])
        self.assertEqual(resolve_permissions(self.db, role.id), [LIST_USERS])
        role_service.revoke_permission(self.db, role.id, list_users.id)
        self.assertEqual(resolve_permissions(self.db, role.id), [])


class TestRoleCrud(DatabaseTestCase):
    def test_create_and_rename(self) -> None:
        role = role_service.create_role(self.db, "Reviewer", "Reads things")
        self.assertEqual(role.permissions, [])
        updated = role_service.update_role(self.db, role.id, name="Senior Reviewer")
        self.assertEqual(updated.name, "Senior Reviewer")
        self.assertEqual(updated.description, "Reads things")

    def test_duplicate_name_conflicts(self) -> None:
        role_service.create_role(self.db, "Reviewer")
        with self.assertRaises(ConflictError):
            role_service.create_role(self.db, "Reviewer")
        other = role_service.create_role(self.db, "Editor")
        with self.assertRaises(ConflictError):
            role_service.update_role(self.db, other.id, name="Reviewer")

    def test_unknown_permission_ids(self) -> None:
        with self.assertRaises(PermissionNotFound):
            role_service.create_role(self.db, "Broken", permission_ids=[12345])
        self.assertIsNone(self.db.query(Role).filter(Role.name == "Broken").first())

    def test_delete_role_in_use_conflicts(self) -> None:
        role = self.make_role("Temp")
        self.make_user("temp@example.com", role_id=role.id)
        with self.assertRaises(ConflictError):
            role_service.delete_role(self.db, role.id)

    def test_delete_unused_role(self) -> None:
        role = self.make_role("Disposable", codes=(LIST_USERS,))
        role_service.delete_role(self.db, role.id)
        with self.assertRaises(RoleNotFound):
            role_service.get_role(self.db, role.id)
        self.assertIsNotNone(self.db.query(Permission).filter(Permission.code == LIST_USERS).first())


class TestGrantPermissions(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.role = self.make_role("Grantee", codes=(MANAGE_ROLES,))
        self.feature = self.db.query(Feature).first()
        self.action = self.db.query(PermissionAction).first()

    def _grant(self, code: str, feature_id: int | None = None, action_id: int | None = None):
        return PermissionGrant(
            code=code,
            feature_id=feature_id or self.feature.id,
            permission_action_id=action_id or self.action.id,
        )

    def test_existing_and_new_codes(self) -> None:
        result = role_service.grant_permissions(
            self.db,
            self.role.id,
            [self._grant(MANAGE_ROLES), self._grant(LIST_USERS), self._grant("EXPORT_REPORTS")],
        )
        self.assertEqual([p.code for p in result.existing_permissions], [MANAGE_ROLES])
        self.assertEqual([p.code for p in result.created_permissions], [LIST_USERS, "EXPORT_REPORTS"])
        self.assertEqual(
            resolve_permissions(self.db, self.role.id),
            sorted([MANAGE_ROLES, LIST_USERS, "EXPORT_REPORTS"]),
        )

    def test_new_code_needs_known_feature(self) -> None:
        with self.assertRaises(ValidationError):
            role_service.grant_permissions(self.db, self.role.id, [self._grant("NEW_CODE", feature_id=999)])
        self.assertIsNone(self.db.query(Permission).filter(Permission.code == "NEW_CODE").first())

    def test_empty_grant_and_unknown_role(self) -> None:
        with self.assertRaises(ValidationError):
            role_service.grant_permissions(self.db, self.role.id, [])
        with self.assertRaises(RoleNotFound):
            role_service.grant_permissions(self.db, 999, [self._grant(LIST_USERS)])
