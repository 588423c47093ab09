from datetime import datetime, timedelta, timezone

import jwt

from taskapi.core.config import REFRESH_TOKEN_EXPIRES_DAYS, Settings
from taskapi.core.errors import InvalidToken, TokenExpired

REFRESH_TOKEN_TYPE = "refresh"


class TokenCodec:
    """Issues and verifies HS256 bearer tokens for a user identity.

    Tokens are not revocable: one stays valid until its ``exp`` even if the
    account is deactivated in the meantime.
    """

    def __init__(self, settings: Settings) -> None:
        self.secret = settings.jwt_secret_key
        self.refresh_secret = settings.refresh_secret_key
        self.algorithm = settings.jwt_algorithm
        self.expires_minutes = settings.jwt_expires_minutes

    @staticmethod
    def _payload(claims: dict, lifetime: timedelta) -> dict:
        now = datetime.now(timezone.utc)
        return {
            "sub": str(claims["id"]),
            "email": claims.get("email"),
            "name": claims.get("name"),
            "iat": now,
            "exp": now + lifetime,
        }

    def issue(self, claims: dict, expires_minutes: int | None = None) -> str:
        minutes = self.expires_minutes if expires_minutes is None else expires_minutes
        payload = self._payload(claims, timedelta(minutes=minutes))
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def issue_refresh(self, claims: dict, expires_days: int = REFRESH_TOKEN_EXPIRES_DAYS) -> str:
        payload = self._payload(claims, timedelta(days=expires_days))
        payload["type"] = REFRESH_TOKEN_TYPE
        return jwt.encode(payload, self.refresh_secret, algorithm=self.algorithm)

    def _decode(self, token: str, secret: str) -> dict:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken() from exc

        try:
            payload["id"] = int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidToken() from exc
        return payload

    def verify(self, token: str) -> dict:
        payload = self._decode(token, self.secret)
        if payload.get("type") == REFRESH_TOKEN_TYPE:
            raise InvalidToken()
        return payload

    def verify_refresh(self, token: str) -> dict:
        payload = self._decode(token, self.refresh_secret)
        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidToken()
        return payload
