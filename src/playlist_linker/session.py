"""Process-wide holder for the authenticated Spotify user session."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping, Optional


@dataclass(frozen=True, slots=True)
class CredentialSession:
    """Access token issued to a Spotify user through the authorization code flow."""

    access_token: str
    client_id: str
    expires_at: datetime
    token_type: str = "Bearer"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Return True once ``now`` has reached the absolute expiry instant."""

        current = now or datetime.now(timezone.utc)
        return current >= self.expires_at

    def authorization_header(self) -> str:
        return f"{self.token_type} {self.access_token}"

    @classmethod
    def from_token_response(
        cls,
        payload: Mapping[str, Any],
        *,
        client_id: str,
        now: Optional[datetime] = None,
    ) -> "CredentialSession":
        """Build a session from a Spotify token endpoint JSON body.

        ``expires_in`` is relative (seconds) and is converted to an absolute
        UTC instant anchored at ``now``.
        """

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("Token response did not contain an access_token")

        issued_at = now or datetime.now(timezone.utc)
        expires_in = int(payload.get("expires_in", 3600))
        token_type = str(payload.get("token_type") or "Bearer")

        return cls(
            access_token=access_token,
            client_id=client_id,
            expires_at=issued_at + timedelta(seconds=expires_in),
            token_type=token_type,
        )


class SessionState(str, Enum):
    UNSET = "unset"
    ACTIVE = "active"
    EXPIRED = "expired"


class SessionStore:
    """Single-slot store for the current :class:`CredentialSession`.

    Writes replace the whole session (last writer wins) and reads return
    whatever session is stored at that instant. Expiry is checked by the
    caller, not by :meth:`current`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._session: Optional[CredentialSession] = None
        self._generation = 0

    def set(self, session: CredentialSession) -> None:
        with self._lock:
            self._session = session
            self._generation += 1

    def current(self) -> Optional[CredentialSession]:
        with self._lock:
            return self._session

    def clear(self) -> None:
        with self._lock:
            self._session = None

    @property
    def generation(self) -> int:
        """Number of sessions stored since startup."""

        with self._lock:
            return self._generation

    def state(self, now: Optional[datetime] = None) -> SessionState:
        session = self.current()
        if session is None:
            return SessionState.UNSET
        if session.is_expired(now):
            return SessionState.EXPIRED
        return SessionState.ACTIVE
