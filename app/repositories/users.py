"""User persistence."""

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from app.models import User


class UserRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_live(self, user_id: int) -> User | None:
        """Active, non-deleted user with role and avatar loaded, or None."""
        return (
            self.db.query(User)
            .options(joinedload(User.role), joinedload(User.avatar))
            .filter(User.id == user_id, User.is_active.is_(True), User.is_deleted.is_(False))
            .first()
        )

    def get_by_email(self, email: str, include_deleted: bool = True) -> User | None:
        query = self.db.query(User).filter(func.lower(User.email) == email.strip().lower())
        if not include_deleted:
            query = query.filter(User.is_deleted.is_(False))
        return query.first()

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    def search(self, search: str = "", offset: int = 0, limit: int = 20) -> tuple[list[User], int]:
        """Page through active, non-deleted users, newest first; search matches email and names."""
        query = self.db.query(User).filter(User.is_active.is_(True), User.is_deleted.is_(False))
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(User.email).like(pattern),
                    func.lower(User.first_name).like(pattern),
                    func.lower(User.last_name).like(pattern),
                )
            )
        total = query.count()
        users = (
            query.options(joinedload(User.role))
            .order_by(User.created_at.desc(), User.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return users, total

    def list_not_deleted(self) -> list[User]:
        return (
            self.db.query(User)
            .options(joinedload(User.role), joinedload(User.avatar))
            .filter(User.is_deleted.is_(False))
            .order_by(User.id)
            .all()
        )

    def count_with_role(self, role_id: int) -> int:
        return self.db.query(User).filter(User.role_id == role_id).count()

    def soft_delete(self, user: User) -> None:
        user.is_deleted = True
        user.is_active = False
        self.db.flush()
