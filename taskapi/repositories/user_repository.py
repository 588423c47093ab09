from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskapi.core.errors import DuplicateEmail
from taskapi.entities import UserRecord
from taskapi.models.user import User

UPDATABLE_FIELDS = {"name", "active", "role", "password_hash"}


def to_record(user: User, include_password: bool = False) -> UserRecord:
    return UserRecord(
        id=user.id,
        name=user.name,
        email=user.email,
        active=user.active,
        role=user.role,
        last_access=user.last_access,
        created_at=user.created_at,
        updated_at=user.updated_at,
        password_hash=user.password_hash if include_password else None,
    )


class UserRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_id(self, user_id: int, include_password: bool = False) -> UserRecord | None:
        user = self.db.get(User, user_id)
        if user is None:
            return None
        return to_record(user, include_password=include_password)

    def find_by_email(self, email: str) -> UserRecord | None:
        user = self.db.query(User).filter(User.email == email).first()
        if user is None:
            return None
        return to_record(user, include_password=True)

    def insert(self, name: str, email: str, password_hash: str, role: str | None = None) -> UserRecord:
        user = User(name=name, email=email, password_hash=password_hash, role=role)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race against a concurrent registration for the same email.
            self.db.rollback()
            raise DuplicateEmail() from exc
        self.db.refresh(user)
        return to_record(user)

    def update_partial(self, user_id: int, fields: dict) -> UserRecord | None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {', '.join(sorted(unknown))}")

        user = self.db.get(User, user_id)
        if user is None:
            return None

        for name, value in fields.items():
            setattr(user, name, value)
        self.db.commit()
        self.db.refresh(user)
        return to_record(user)

    def touch_last_access(self, user_id: int, when: datetime) -> None:
        self.db.query(User).filter(User.id == user_id).update({User.last_access: when})
        self.db.commit()
