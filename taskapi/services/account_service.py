import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from taskapi.auth.jwt_handler import TokenCodec
from taskapi.auth.passwords import PasswordHasher
from taskapi.core.errors import AccountInactive, DuplicateEmail, InvalidCredentials, InvalidToken
from taskapi.entities import UserRecord
from taskapi.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class AuthSession:
    user: UserRecord
    token: str
    refresh_token: str


class AccountService:
    """Registration, login and profile management for user accounts."""

    def __init__(self, users: UserRepository, codec: TokenCodec, hasher: PasswordHasher) -> None:
        self.users = users
        self.codec = codec
        self.hasher = hasher

    def _session_for(self, user: UserRecord) -> AuthSession:
        claims = user.token_claims()
        return AuthSession(
            user=user,
            token=self.codec.issue(claims),
            refresh_token=self.codec.issue_refresh(claims),
        )

    def register(self, name: str, email: str, password: str) -> AuthSession:
        if self.users.find_by_email(email) is not None:
            raise DuplicateEmail()

        password_hash = self.hasher.hash(password)
        user = self.users.insert(name=name, email=email, password_hash=password_hash)

        logger.info('User registered: %s', email)
        return self._session_for(user)

    def login(self, email: str, password: str) -> AuthSession:
        user = self.users.find_by_email(email)
        if user is None:
            raise InvalidCredentials()

        if not user.active:
            raise AccountInactive()

        if not self.hasher.verify(password, user.password_hash):
            raise InvalidCredentials()

        now = datetime.now(timezone.utc)
        self.users.touch_last_access(user.id, now)
        refreshed = self.users.find_by_id(user.id)

        logger.info('User authenticated: %s', email)
        return self._session_for(refreshed)

    def get_profile(self, user: UserRecord) -> UserRecord:
        return user

    def update_profile(self, user: UserRecord, name: str | None = None) -> UserRecord:
        fields = {}
        if name is not None:
            fields["name"] = name

        updated = self.users.update_partial(user.id, fields) if fields else self.users.find_by_id(user.id)

        logger.info('Profile updated for user: %s', user.email)
        return updated

    def refresh(self, refresh_token: str) -> str:
        payload = self.codec.verify_refresh(refresh_token)
        user = self.users.find_by_id(payload["id"])
        if user is None:
            raise InvalidToken()
        return self.codec.issue(user.token_claims())
