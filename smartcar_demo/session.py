"""
Smartcar Demo - Session Model
===============================
Typed per-visitor state stored in the signed session cookie.

The cookie is the only persisted state, so the models below are the complete
data model of a visitor:

    Session
      access   -> Access | None       (None means the visitor is anonymous)
      vehicles -> {vehicle_id: VehicleRecord}

Starlette's SessionMiddleware signs the cookie and exposes it as a plain
dict on request.session. The functions at the bottom of this module are the
only place that dict is read or written.
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field, ValidationError


logger = logging.getLogger(__name__)


class Access(BaseModel):
    """Access credential returned by the authorization code exchange."""

    access_token: str
    token_type: str | None = None
    expires_in: int | None = None
    expiration: datetime | None = None
    refresh_token: str | None = Field(default=None, repr=False)
    refresh_expiration: datetime | None = None


class VehicleRecord(BaseModel):
    """
    A vehicle known to the session.

    Only `id` is guaranteed. A placeholder holding just the id is registered
    as soon as the vehicle is listed; make/model/year arrive with the
    metadata fetch. Any additional fields the API returns are kept.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    make: str | None = None
    model: str | None = None
    year: int | None = None

    @property
    def display_name(self) -> str:
        parts = [str(p) for p in (self.year, self.make, self.model) if p]
        return " ".join(parts) or self.id


class Session(BaseModel):
    """Complete per-visitor state."""

    access: Access | None = None
    vehicles: dict[str, VehicleRecord] = Field(default_factory=dict)

    @property
    def is_authorized(self) -> bool:
        return self.access is not None

    @property
    def access_token(self) -> str:
        """The current access token. Only valid on authorized sessions."""
        if self.access is None:
            raise RuntimeError("Session has no access credential")
        return self.access.access_token

    @classmethod
    def from_cookie(cls, data: dict[str, Any] | None) -> "Session":
        """
        Decode the cookie payload.

        An empty, stale or tampered payload decodes to an anonymous session
        rather than failing the request.
        """
        if not data:
            return cls()
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.warning("Discarding unreadable session cookie: %d error(s)", e.error_count())
            return cls()

    def to_cookie(self) -> dict[str, Any]:
        """Encode the session as a JSON-serializable cookie payload."""
        return self.model_dump(mode="json", exclude_none=True)


# -- Request helpers ----------------------------------------------------------

def load_session(request: Request) -> Session:
    """Read the typed session for the current request."""
    return Session.from_cookie(dict(request.session))


def save_session(request: Request, session: Session) -> None:
    """Replace the cookie payload with the given session."""
    request.session.clear()
    request.session.update(session.to_cookie())


def clear_session(request: Request) -> None:
    """Drop all session state; the visitor becomes anonymous."""
    request.session.clear()
