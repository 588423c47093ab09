import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from taskapi.auth.jwt_handler import TokenCodec
from taskapi.auth.passwords import PasswordHasher
from taskapi.core.errors import Forbidden, MissingToken, Unauthenticated
from taskapi.database import get_db
from taskapi.entities import UserRecord
from taskapi.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

# Missing or malformed headers are reported by get_current_user, not HTTPBearer.
security = HTTPBearer(auto_error=False)


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    codec: TokenCodec = Depends(get_token_codec),
    db: Session = Depends(get_db),
) -> UserRecord:
    if credentials is None or not credentials.credentials:
        raise MissingToken()

    try:
        payload = codec.verify(credentials.credentials)
    except Unauthenticated as exc:
        logger.warning('Authentication error: %s', exc.message)
        raise

    user = UserRepository(db).find_by_id(payload["id"])
    if user is None:
        raise Unauthenticated("User not found or invalid token")

    request.state.user = user
    return user


def require_roles(*allowed_roles: str):
    def check(user: UserRecord = Depends(get_current_user)) -> UserRecord:
        if not user.role or user.role not in allowed_roles:
            raise Forbidden()
        return user

    return check
