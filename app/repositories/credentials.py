"""UserCredential persistence."""

from sqlalchemy.orm import Session, joinedload

from app.models import AUTH_TYPE_PASSWORD, User, UserCredential


class CredentialRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _active(self):
        return self.db.query(UserCredential).filter(
            UserCredential.is_active.is_(True),
            UserCredential.is_deleted.is_(False),
        )

    def get(self, credential_id: int) -> UserCredential | None:
        return self.db.get(UserCredential, credential_id)

    def get_active_for_user(self, credential_id: int, user_id: int) -> UserCredential | None:
        return (
            self._active()
            .filter(UserCredential.id == credential_id, UserCredential.user_id == user_id)
            .first()
        )

    def get_active_password_by_login(self, login_name: str) -> UserCredential | None:
        """Active password credential for login_name whose user is active and not deleted."""
        return (
            self._active()
            .join(UserCredential.user)
            .options(joinedload(UserCredential.user))
            .filter(
                UserCredential.login_name == login_name,
                UserCredential.auth_type == AUTH_TYPE_PASSWORD,
                User.is_active.is_(True),
                User.is_deleted.is_(False),
            )
            .first()
        )

    def get_active_password_for_user(self, user_id: int) -> UserCredential | None:
        return (
            self._active()
            .filter(
                UserCredential.user_id == user_id,
                UserCredential.auth_type == AUTH_TYPE_PASSWORD,
            )
            .first()
        )

    def get_by_login(self, login_name: str, auth_type: str) -> UserCredential | None:
        """Any credential (including deleted) holding the (login_name, auth_type) pair."""
        return (
            self.db.query(UserCredential)
            .filter(UserCredential.login_name == login_name, UserCredential.auth_type == auth_type)
            .first()
        )

    def get_by_openid(self, provider: str, subject: str) -> UserCredential | None:
        """Any credential (including deleted) mapped to (provider, subject)."""
        return (
            self.db.query(UserCredential)
            .options(joinedload(UserCredential.user))
            .filter(
                UserCredential.openid_provider == provider,
                UserCredential.openid_subject == subject,
            )
            .first()
        )

    def list_active_for_user(self, user_id: int) -> list[UserCredential]:
        return self._active().filter(UserCredential.user_id == user_id).order_by(UserCredential.id).all()

    def count_active_for_user(self, user_id: int) -> int:
        return self._active().filter(UserCredential.user_id == user_id).count()

    def add(self, credential: UserCredential) -> UserCredential:
        self.db.add(credential)
        self.db.flush()
        return credential
