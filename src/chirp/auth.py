"""Login and registration against the ``users`` relation."""

import hashlib
import hmac
import logging
import os

from prometheus_client import Counter
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .errors import (
    ChirpError,
    EmailTaken,
    InvalidCredentials,
    MalformedRequest,
    StoreFailure,
    UsernameTaken,
)
from .models.user import User
from .stores import UserStore

logger = logging.getLogger(__name__)

REGISTRATION_COUNTER = Counter("users_registered_total", "Total users registered")
LOGIN_FAILURE_COUNTER = Counter("login_failures_total", "Total rejected login attempts")

HASH_SCHEME = "pbkdf2_sha256"


def hash_password(password: str, iterations: int | None = None) -> str:
    """Return a salted PBKDF2 digest encoded as ``scheme$iterations$salt$hash``."""
    iterations = iterations or settings.password_hash_iterations
    salt = os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)
    return f"{HASH_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        scheme, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False
    if scheme != HASH_SCHEME:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), bytes.fromhex(salt), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), expected)


def _require(**fields) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise MalformedRequest(f"Missing fields: {', '.join(missing)}")


class AuthService:
    """Credential verification and account creation."""

    def __init__(self, session: Session):
        self.session = session
        self.users = UserStore(session)

    def _handle_store_error(self, exc: SQLAlchemyError) -> None:
        self.session.rollback()
        logger.exception("auth store error", exc_info=exc)
        raise StoreFailure() from exc

    def login(self, email: str | None, password: str | None) -> User:
        """Return the user owning ``email`` if ``password`` verifies.

        An unknown email and a wrong password raise the same
        :class:`InvalidCredentials` so account existence is not revealed.
        """
        _require(email=email, password=password)
        try:
            user = self.users.get_by_email(email)
        except SQLAlchemyError as exc:
            self._handle_store_error(exc)
        if user is None or not verify_password(password, user.hash):
            LOGIN_FAILURE_COUNTER.inc()
            logger.info("rejected login for email=%s", email)
            raise InvalidCredentials()
        logger.info("login user=%s", user.id)
        return user

    def register(
        self,
        email: str | None,
        password: str | None,
        username: str | None,
        name: str | None,
    ) -> User:
        """Create a user after checking email, then username, uniqueness.

        The pre-checks only give the common case a clean error; the unique
        indexes decide when two registrations race, and the resulting
        integrity error is classified in the same email-first order.
        """
        _require(email=email, password=password, username=username, name=name)
        logger.info("register username=%s", username)
        try:
            self._check_available(email, username)
            user_id = self.users.add(
                email=email,
                hash=hash_password(password),
                username=username,
                name=name,
                role="user",
            )
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning("registration collided for username=%s", username)
            self._check_available(email, username)
            # Neither value is taken now, so the violation came from elsewhere.
            self._handle_store_error(exc)
        except ChirpError:
            self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            self._handle_store_error(exc)

        try:
            user = self.users.get(user_id)
        except SQLAlchemyError as exc:
            self._handle_store_error(exc)
        REGISTRATION_COUNTER.inc()
        logger.info("registered user=%s username=%s", user.id, username)
        return user

    def _check_available(self, email: str, username: str) -> None:
        if self.users.get_by_email(email) is not None:
            raise EmailTaken()
        if self.users.get_by_username(username) is not None:
            raise UsernameTaken()
