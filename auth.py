from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from config import get_settings
from models import User
from schemas import PasswordChangeIn

logger = logging.getLogger(__name__)

SESSION_COOKIE = "daybook_session"


class AuthenticationFailed(ValueError):
    pass


@dataclass(frozen=True)
class UserSession:
    user_id: int
    email: str


def _serializer(salt: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(get_settings().secret, salt=salt)


def issue_session_token(user: User) -> str:
    return _serializer("session").dumps({"u": user.id, "e": user.email})


def read_session_token(token: Optional[str]) -> Optional[UserSession]:
    if not token:
        return None
    max_age = get_settings().session_hours * 3600
    try:
        data = _serializer("session").loads(token, max_age=max_age)
    except BadSignature:
        return None
    if not isinstance(data, dict) or "u" not in data:
        return None
    return UserSession(user_id=int(data["u"]), email=str(data.get("e", "")))


def generate_csrf_token(user_id: int, max_age_hours: int = 2) -> str:
    timestamp = int(time.time())
    token_data = {"u": user_id, "exp": timestamp + max_age_hours * 3600}
    return _serializer("csrf-token").dumps(token_data)


def validate_csrf_token(token: str, user_id: int, max_age_hours: int = 2) -> bool:
    if not token:
        return False
    try:
        data = _serializer("csrf-token").loads(token, max_age=max_age_hours * 3600)
    except BadSignature:
        return False
    if data.get("u") != user_id:
        return False
    return int(time.time()) <= data.get("exp", 0)


class AuthService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _by_email(self, email: str) -> Optional[User]:
        return self.session.scalar(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )

    def create_user(self, email: str, password: str) -> User:
        if self._by_email(email):
            raise ValueError("A user with this email already exists")
        user = User(
            email=email.strip().lower(),
            password_hash=generate_password_hash(password),
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def ensure_user(self, email: str, password: str) -> User:
        existing = self._by_email(email)
        if existing:
            return existing
        user = self.create_user(email, password)
        logger.info(f"user_created: email={user.email}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self._by_email(email)
        if not user or not check_password_hash(user.password_hash, password):
            logger.info(f"login_failed: email={email.strip().lower()}")
            raise AuthenticationFailed("Invalid email or password")
        logger.info(f"login: user_id={user.id}")
        return user

    def change_password(self, user_id: int, data: PasswordChangeIn) -> None:
        user = self.session.get(User, user_id)
        if not user:
            raise AuthenticationFailed("Unknown user")
        user.password_hash = generate_password_hash(data.new_password)
        self.session.commit()
        logger.info(f"password_changed: user_id={user_id}")
