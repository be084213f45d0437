# services/user_roster.py

import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from jose import jwt, JOSEError
from passlib.context import CryptContext

import schemas
from errors import AuthenticationFailed, PermissionDenied, ValidationError
from utils import get_logger

logger = get_logger("roster")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ALGORITHM = "HS256"
SESSION_TTL = timedelta(days=1)


@dataclass
class RosterEntry:
    id: str
    username: str
    role: schemas.Role
    hashed_password: str

    def verify_password(self, password: str) -> bool:
        return pwd_context.verify(password, self.hashed_password)

    def public(self) -> schemas.User:
        return schemas.User(id=self.id, username=self.username, role=self.role)


class UserRoster:
    """
    Process-local operator list. Lost on restart; seeded with one admin.
    """
    def __init__(self):
        self._users: Dict[str, RosterEntry] = {}
        self._lock = threading.Lock()

    def list_users(self) -> List[schemas.User]:
        with self._lock:
            return [u.public() for u in self._users.values()]

    def _find_unlocked(self, username: str) -> Optional[RosterEntry]:
        lowered = (username or "").strip().lower()
        return next((u for u in self._users.values() if u.username.lower() == lowered), None)

    def find(self, username: str) -> Optional[RosterEntry]:
        with self._lock:
            return self._find_unlocked(username)

    def add_user(self, username: str, password: str, role: schemas.Role = schemas.Role.EDITOR) -> schemas.User:
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username is required.")
        if not password:
            raise ValidationError("Password is required.")
        entry = RosterEntry(
            id=uuid.uuid4().hex,
            username=username,
            role=schemas.Role(role),
            hashed_password=pwd_context.hash(password),
        )
        # Duplicate check and insert under one lock hold.
        with self._lock:
            if self._find_unlocked(username):
                raise ValidationError(f"User '{username}' already exists.")
            self._users[entry.id] = entry
        logger.info("Added user %s (%s)", username, entry.role.value)
        return entry.public()

    def remove_user(self, user_id: str) -> bool:
        with self._lock:
            removed = self._users.pop(user_id, None)
        if removed:
            logger.info("Removed user %s", removed.username)
        return removed is not None

    def authenticate(self, username: str, password: str) -> schemas.User:
        user = self.find(username)
        if not user or not user.verify_password(password):
            raise AuthenticationFailed("Invalid username or password")
        return user.public()


def create_roster(admin_username: str, admin_password: Optional[str]) -> UserRoster:
    """
    Roster seeded with the bootstrap admin. Without a configured password a random
    one is generated and logged once.
    """
    roster = UserRoster()
    if not admin_password:
        admin_password = uuid.uuid4().hex
        logger.warning("BOOTSTRAP_ADMIN_PASSWORD not set; generated password for %s: %s",
                       admin_username, admin_password)
    roster.add_user(admin_username, admin_password, schemas.Role.ADMIN)
    return roster


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def issue_session_token(user: schemas.User, secret: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {"sub": user.username, "uid": user.id, "role": user.role.value, "exp": now + SESSION_TTL}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_session_token(token: str, secret: str) -> schemas.User:
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JOSEError as e:
        raise AuthenticationFailed("Invalid or expired session") from e
    if not payload.get("sub") or payload.get("role") not in schemas.Role._value2member_map_:
        raise AuthenticationFailed("Invalid session")
    return schemas.User(id=payload.get("uid", ""), username=payload["sub"], role=payload["role"])


def require_role(user: schemas.User, role: schemas.Role) -> None:
    if user.role != role:
        raise PermissionDenied(f"{role.value} role required")
