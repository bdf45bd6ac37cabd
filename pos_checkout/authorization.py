"""Manager authorization for discretionary discounts.

A cashier asks a manager to enter their credentials on the terminal. If the
credentials verify and the manager holds an allow-listed role, the terminal
gets a short elevated session during which manual discounts are accepted.

Expiry is a wall-clock comparison made on every ``is_authorized()`` call, so
nothing has to be scheduled and tests never sleep. The session lives in
memory only.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Protocol

import structlog

from .clock import Clock, SystemClock
from .errors import InvalidCredentials, RoleNotAllowed, errmsg
from .roles import DISCOUNT_ALLOWED_ROLES, RoleSet
from .validation import require_positive, require_present

DEFAULT_SESSION_DURATION_MINUTES = 30


@dataclass(frozen=True)
class Identity:
    """A staff member as reported by the credential verifier."""

    user_id: str
    email: str
    name: str = ""
    roles: RoleSet = field(default_factory=RoleSet)


class CredentialVerifier(Protocol):
    """Checks an email/password pair against the commerce backend.

    Returns ``None`` (or raises ``InvalidCredentials``) when rejected.
    """

    def verify_credentials(self, email: str, password: str) -> Optional[Identity]: ...


class AuthorizationCheck(Protocol):
    def is_authorized(self) -> bool: ...


@dataclass(frozen=True)
class DiscountAuthorization:
    authorized_by: Identity
    authorized_at: datetime
    session_duration_minutes: float = DEFAULT_SESSION_DURATION_MINUTES

    @property
    def expires_at(self) -> datetime:
        return self.authorized_at + timedelta(minutes=float(self.session_duration_minutes))

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


class ManagerAuthorizationSession:
    """Time-bounded elevated session for one terminal.

    States are Unauthorized and Authorized. ``authorize`` moves to
    Authorized; TTL expiry or ``clear`` moves back.
    """

    def __init__(
        self,
        verifier: CredentialVerifier,
        *,
        allowed_roles: RoleSet = DISCOUNT_ALLOWED_ROLES,
        session_duration_minutes: float = DEFAULT_SESSION_DURATION_MINUTES,
        clock: Clock | None = None,
        terminal_id: str = "",
    ) -> None:
        require_positive(session_duration_minutes, errmsg.SESSION_DURATION_POSITIVE)
        self._verifier = verifier
        self._allowed_roles = allowed_roles
        self._duration = float(session_duration_minutes)
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._authorization: DiscountAuthorization | None = None
        self._log = structlog.get_logger().bind(component="manager_auth", terminal_id=terminal_id)

    @property
    def allowed_roles(self) -> RoleSet:
        return self._allowed_roles

    @property
    def session_duration_minutes(self) -> float:
        return self._duration

    def authorize(self, email: str, password: str) -> Identity:
        """Verify credentials and open an elevated session.

        Raises:
            ValidationError: email or password is empty.
            InvalidCredentials: the verifier rejected the credentials.
            RoleNotAllowed: the identity holds no allow-listed role.
        """
        require_present(email, errmsg.EMAIL_REQUIRED)
        require_present(password, errmsg.PASSWORD_REQUIRED)

        try:
            identity = self._verifier.verify_credentials(email, password)
        except InvalidCredentials:
            self._log.info("manager_authorization_rejected", email=email, reason="invalid_credentials")
            raise

        if identity is None:
            self._log.info("manager_authorization_rejected", email=email, reason="invalid_credentials")
            raise InvalidCredentials()

        if not identity.roles.intersects(self._allowed_roles):
            self._log.info(
                "manager_authorization_rejected",
                email=email,
                reason="role_not_allowed",
                roles=identity.roles.names(),
            )
            raise RoleNotAllowed(identity.roles.names(), self._allowed_roles.names())

        authorization = DiscountAuthorization(
            authorized_by=identity,
            authorized_at=self._clock.now(),
            session_duration_minutes=self._duration,
        )
        with self._lock:
            self._authorization = authorization

        self._log.info(
            "manager_authorized",
            authorized_by=identity.user_id,
            expires_at=authorization.expires_at.isoformat(),
        )
        return identity

    def _current(self) -> DiscountAuthorization | None:
        # Caller holds the lock.
        auth = self._authorization
        if auth is None:
            return None
        if not auth.is_valid(self._clock.now()):
            self._authorization = None
            self._log.info("manager_authorization_expired", authorized_by=auth.authorized_by.user_id)
            return None
        return auth

    def is_authorized(self) -> bool:
        with self._lock:
            return self._current() is not None

    @property
    def authorization(self) -> DiscountAuthorization | None:
        with self._lock:
            return self._current()

    @property
    def authorized_by(self) -> Identity | None:
        auth = self.authorization
        return auth.authorized_by if auth else None

    def expires_at(self) -> datetime | None:
        auth = self.authorization
        return auth.expires_at if auth else None

    def remaining(self) -> timedelta:
        """Time left in the elevated session, zero when not authorized."""
        with self._lock:
            auth = self._current()
            if auth is None:
                return timedelta(0)
            return auth.expires_at - self._clock.now()

    def clear(self) -> None:
        with self._lock:
            had_session = self._authorization is not None
            self._authorization = None
        if had_session:
            self._log.info("manager_authorization_cleared")


class AuthorizationRegistry:
    """One manager session per terminal or operator key."""

    def __init__(
        self,
        verifier: CredentialVerifier,
        *,
        allowed_roles: RoleSet = DISCOUNT_ALLOWED_ROLES,
        session_duration_minutes: float = DEFAULT_SESSION_DURATION_MINUTES,
        clock: Clock | None = None,
    ) -> None:
        require_positive(session_duration_minutes, errmsg.SESSION_DURATION_POSITIVE)
        self._verifier = verifier
        self._allowed_roles = allowed_roles
        self._duration = float(session_duration_minutes)
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._sessions: dict[str, ManagerAuthorizationSession] = {}

    def session_for(self, terminal_id: str) -> ManagerAuthorizationSession:
        with self._lock:
            session = self._sessions.get(terminal_id)
            if session is None:
                session = ManagerAuthorizationSession(
                    self._verifier,
                    allowed_roles=self._allowed_roles,
                    session_duration_minutes=self._duration,
                    clock=self._clock,
                    terminal_id=terminal_id,
                )
                self._sessions[terminal_id] = session
            return session

    def clear_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
        for session in sessions:
            session.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
