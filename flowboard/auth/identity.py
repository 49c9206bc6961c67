"""Session/auth gate for flowboard.

The gate tracks whether a user is signed in and turns identity-provider
failures into user-facing messages. The identity provider itself sits behind
the IdentityProvider protocol; LocalIdentityProvider is a SQL-backed
implementation.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from sqlalchemy.orm import Session

from flowboard.auth.passwords import hash_password, verify_password
from flowboard.database.user_repository import UserRepository
from flowboard.models.constants import MAX_FAILED_SIGN_INS, MIN_PASSWORD_LENGTH
from flowboard.models.user import User

logger = logging.getLogger(__name__)

AUTH_ERROR_MESSAGES: Dict[str, str] = {
    "auth/email-already-in-use": "This email is already registered.",
    "auth/invalid-email": "Invalid email address.",
    "auth/operation-not-allowed": "Email/password accounts are not enabled.",
    "auth/weak-password": "Password should be at least 6 characters.",
    "auth/user-disabled": "This account has been disabled.",
    "auth/user-not-found": "No account found with this email.",
    "auth/wrong-password": "Incorrect password.",
    "auth/invalid-credential": "Invalid email or password.",
    "auth/too-many-requests": "Too many failed attempts. Please try again later.",
}

GENERIC_AUTH_ERROR = "An error occurred. Please try again."

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def auth_error_message(code: str) -> str:
    """User-facing message for an identity-provider error code."""
    return AUTH_ERROR_MESSAGES.get(code, GENERIC_AUTH_ERROR)


class AuthFailure(Exception):
    """Identity-provider rejection carrying a provider error code."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code

    @property
    def message(self) -> str:
        return auth_error_message(self.code)


class IdentityProvider(Protocol):
    """Email/password identity provider. Every failure raises AuthFailure."""

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> User: ...

    def sign_in(self, email: str, password: str) -> User: ...

    def sign_out(self, user_id: str) -> None: ...

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None: ...


class LocalIdentityProvider:
    """Identity provider backed by the users table.

    Repeated wrong passwords lock the account out (auth/too-many-requests)
    until the next successful sign-in.
    """

    def __init__(self, session_factory: Callable[[], Session], allow_sign_up: bool = True):
        self._session_factory = session_factory
        self._allow_sign_up = allow_sign_up

    @staticmethod
    def _check_email(email: str) -> str:
        email = (email or "").strip().lower()
        if not _EMAIL_RE.match(email):
            raise AuthFailure("auth/invalid-email")
        return email

    @staticmethod
    def _check_password_strength(password: str) -> None:
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthFailure("auth/weak-password")

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> User:
        if not self._allow_sign_up:
            raise AuthFailure("auth/operation-not-allowed")
        email = self._check_email(email)
        self._check_password_strength(password)

        with self._session_factory() as db:
            repo = UserRepository(db)
            if repo.get_by_email(email) is not None:
                raise AuthFailure("auth/email-already-in-use")
            user = repo.create(email, hash_password(password), display_name)

        logger.info(f"Created account {user.id}")
        return user

    def sign_in(self, email: str, password: str) -> User:
        email = self._check_email(email)
        if not password:
            raise AuthFailure("auth/invalid-credential")

        with self._session_factory() as db:
            repo = UserRepository(db)
            user_db = repo.get_by_email(email)
            if user_db is None:
                raise AuthFailure("auth/user-not-found")
            if user_db.disabled:
                raise AuthFailure("auth/user-disabled")

            if not verify_password(password, user_db.password_hash):
                user_db.failed_sign_ins = (user_db.failed_sign_ins or 0) + 1
                repo.save(user_db)
                logger.warning(f"Failed sign-in for {user_db.id} ({user_db.failed_sign_ins} in a row)")
                if user_db.failed_sign_ins >= MAX_FAILED_SIGN_INS:
                    raise AuthFailure("auth/too-many-requests")
                raise AuthFailure("auth/wrong-password")

            if user_db.failed_sign_ins:
                user_db.failed_sign_ins = 0
                repo.save(user_db)
            return user_db.to_pydantic()

    def sign_out(self, user_id: str) -> None:
        # Bearer tokens are stateless; nothing to revoke locally
        logger.info(f"Signed out {user_id}")

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        with self._session_factory() as db:
            repo = UserRepository(db)
            user_db = repo.get(user_id)
            if user_db is None:
                raise AuthFailure("auth/user-not-found")
            if not verify_password(current_password or "", user_db.password_hash):
                raise AuthFailure("auth/wrong-password")
            self._check_password_strength(new_password)

            user_db.password_hash = hash_password(new_password)
            repo.save(user_db)
        logger.info(f"Changed password for {user_id}")


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a gate operation; `message` is user-facing."""

    ok: bool
    user: Optional[User] = None
    code: Optional[str] = None
    message: Optional[str] = None


AuthListener = Callable[[Optional[User]], None]


class AuthGate:
    """Signed-in/signed-out state machine in front of an identity provider.

    Listeners are called with the user on sign-in and with None on sign-out.
    """

    def __init__(self, provider: IdentityProvider):
        self._provider = provider
        self._user: Optional[User] = None
        self._listeners: List[AuthListener] = []

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def signed_in(self) -> bool:
        return self._user is not None

    def on_change(self, listener: AuthListener) -> None:
        self._listeners.append(listener)

    def _transition(self, user: Optional[User]) -> None:
        self._user = user
        for listener in list(self._listeners):
            listener(user)

    @staticmethod
    def _failure(e: AuthFailure) -> AuthResult:
        logger.warning(f"Auth failure: {e.code}")
        return AuthResult(ok=False, code=e.code, message=e.message)

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> AuthResult:
        try:
            user = self._provider.sign_up(email, password, display_name)
        except AuthFailure as e:
            return self._failure(e)
        self._transition(user)
        return AuthResult(ok=True, user=user, message="Account created successfully!")

    def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            user = self._provider.sign_in(email, password)
        except AuthFailure as e:
            return self._failure(e)
        self._transition(user)
        return AuthResult(ok=True, user=user)

    def restore(self, user: User) -> None:
        """Adopt an identity that was already verified (e.g. from a bearer token)."""
        if self._user is None or self._user.id != user.id:
            self._transition(user)

    def sign_out(self) -> AuthResult:
        if self._user is None:
            return AuthResult(ok=True)
        try:
            self._provider.sign_out(self._user.id)
        except AuthFailure as e:
            return self._failure(e)
        self._transition(None)
        return AuthResult(ok=True, message="Signed out successfully")

    def change_password(self, current_password: str, new_password: str) -> AuthResult:
        if self._user is None:
            return self._failure(AuthFailure("auth/user-not-found"))
        try:
            self._provider.change_password(self._user.id, current_password, new_password)
        except AuthFailure as e:
            return self._failure(e)
        return AuthResult(ok=True, user=self._user, message="Password updated")
