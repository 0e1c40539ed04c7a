"""Session backed by a bearer token taken from configuration.

Acquiring and storing tokens belongs to the login flow; this session only
hands the current token out and tears itself down on an unauthorized
response, remembering where the user should return after logging in.
"""

from __future__ import annotations

import logging

from storefront.domain.repository.order_gateway import Session

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/login"


class EnvSession(Session):

    def __init__(self, token: str | None = None) -> None:
        self._token = token or None
        self.redirect_to: str | None = None
        self.return_to: str | None = None

    @property
    def token(self) -> str | None:
        return self._token

    def force_logout(self, return_to: str) -> None:
        logger.warning("Session expired; redirecting to %s (from %s)", LOGIN_ROUTE, return_to)
        self._token = None
        self.redirect_to = LOGIN_ROUTE
        self.return_to = return_to
