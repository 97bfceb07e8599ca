"""Client for the external authentication backend."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from api.schemas import AuthResult, Credentials, RegistrationProfile
from config import config

logger = logging.getLogger(__name__)


class AuthenticationFailure(Exception):
    """
    Login or registration did not succeed.

    Deliberately opaque: bad credentials, an unreachable backend and a
    malformed response all look the same to the caller.
    """

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} failed")
        self.operation = operation


class AuthClient:
    """Forward login and registration to the auth backend over HTTP."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Auth backend root (defaults to AUTH_BASE_URL)
            timeout: Request timeout in seconds
            transport: Custom httpx transport, e.g. httpx.MockTransport in tests
        """
        self.base_url = base_url or config.auth.base_url
        self.timeout = timeout or config.auth.timeout
        self._transport = transport

    async def login(self, credentials: Credentials) -> AuthResult:
        """Exchange credentials for a token and user profile."""
        logger.info("Login attempt for %s", credentials.email)
        result = await self._call("login", "/login", credentials.model_dump())
        if not result.token:
            logger.warning("Login for %s returned no token", credentials.email)
            raise AuthenticationFailure("login")
        return result

    async def register(self, profile: RegistrationProfile) -> AuthResult:
        """
        Create an account.

        The backend may or may not log the new user in; a result without a
        token means the caller has to ask the user to log in.
        """
        logger.info("Registration attempt for %s", profile.email)
        body = profile.model_dump(exclude={"confirm_password"})
        return await self._call("register", "/register", body)

    async def _call(self, operation: str, path: str, body: dict[str, Any]) -> AuthResult:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(path, json=body)
                response.raise_for_status()
                return AuthResult.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            logger.warning("Auth backend %s failed: %r", operation, exc)
            raise AuthenticationFailure(operation) from exc


# Global client instance
_auth_client: AuthClient | None = None


def get_auth_client() -> AuthClient:
    """Get or create the auth client."""
    global _auth_client
    if _auth_client is None:
        _auth_client = AuthClient()
    return _auth_client
