"""Session token verification against the hosted auth service."""

import logging

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

STAFF_ROLES = frozenset({"staff", "admin"})


class AuthenticatedUser(BaseModel):
    """Caller identity derived from a verified session token.

    ``roles`` always come from the server-side role table, never from the token
    payload or the request body.
    """

    id: str
    email: str | None = None
    roles: set[str] = Field(default_factory=set)

    @property
    def is_staff(self) -> bool:
        return bool(self.roles & STAFF_ROLES)

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles


class AuthServiceClient:
    """HTTP client for the hosted auth service's user endpoint."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 5.0) -> None:
        """Initialize the auth client.

        Args:
            base_url: Base URL of the auth API (e.g., "https://project.example.com/auth/v1")
            api_key: Project API key sent alongside the user's bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    async def get_user(self, token: str) -> AuthenticatedUser | None:
        """Resolve a session token to a user identity.

        Args:
            token: Bearer token from the caller's Authorization header

        Returns:
            AuthenticatedUser without roles, or None when the token is not valid
        """
        url = f"{self.base_url}/user"
        headers = {"Authorization": f"Bearer {token}", "apikey": self.api_key}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=headers)
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            logger.info(f"Session token rejected by auth service: {e.response.status_code}")
            return None
        except httpx.RequestError as e:
            logger.error(f"Failed to reach auth service: {e}")
            return None

        user_id = data.get("id")
        if not user_id:
            return None
        return AuthenticatedUser(id=user_id, email=data.get("email"))
