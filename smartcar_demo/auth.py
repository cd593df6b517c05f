"""
Smartcar Demo - Authorization Flow
====================================
Moves a visitor from anonymous to authorized.

Flow:
    1. Home page shows the Smartcar authorization URL (get_entry_url)
    2. Visitor grants access on Smartcar's Connect page
    3. Smartcar redirects to /callback?code=...
    4. The code is exchanged for an access credential (handle_callback)
    5. A fresh session holding the credential and no vehicles is created
    6. Visitor is sent on to /vehicles

Pages that need a credential declare the require_access dependency, which
raises NotAuthorized for anonymous visitors. The app turns that into a
redirect to the home page.
"""

import logging

from fastapi import Request

from smartcar_demo.config import DemoConfig
from smartcar_demo.errors import ActionError, NotAuthorized, VehicleApiError
from smartcar_demo.session import Session, load_session
from smartcar_demo.vehicle_api import VehicleApi


logger = logging.getLogger(__name__)

EXCHANGE_ACTION = "exchanging authorization code for access token"
EXCHANGE_DEFAULT_MESSAGE = "Failed to exchange authorization code for access token"


class AuthFlow:
    """
    Drives the OAuth authorization code flow.

    Attributes:
        config: Application configuration (client identity, mode).
        api:    Vehicle API used for URL composition and the code exchange.
    """

    def __init__(self, config: DemoConfig, api: VehicleApi):
        self.config = config
        self.api = api

    @property
    def test_mode(self) -> bool:
        """Whether the demo runs against simulated vehicles."""
        return self.config.test_mode

    def get_entry_url(self) -> str:
        """
        Build the authorization URL the visitor must open to grant access.

        Returns:
            The Smartcar Connect URL for this client, redirect URI and scope.
        """
        return self.api.get_auth_url()

    async def handle_callback(self, code: str) -> Session:
        """
        Exchange an authorization code for an access credential.

        Args:
            code: The authorization code from the callback query string.

        Returns:
            A fresh session with `access` set and no vehicles.

        Raises:
            ActionError: If the exchange fails.
        """
        try:
            access = await self.api.exchange_code(code)
        except VehicleApiError as e:
            logger.warning("Authorization code exchange failed: %s", e)
            raise ActionError.from_failure(e, EXCHANGE_DEFAULT_MESSAGE, EXCHANGE_ACTION) from e

        logger.info("Visitor authorized (token expires in %ss)", access.expires_in)
        return Session(access=access, vehicles={})


async def require_access(request: Request) -> Session:
    """
    FastAPI dependency: the current session, which must hold a credential.

    Usage in routes:
        @router.get("/vehicles")
        async def vehicles(session: Session = Depends(require_access)): ...

    Raises:
        NotAuthorized: If the visitor is anonymous.
    """
    session = load_session(request)
    if not session.is_authorized:
        raise NotAuthorized()
    return session
