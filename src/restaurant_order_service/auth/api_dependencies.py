"""FastAPI dependencies for session authentication and role checks.

A bearer token is verified with the hosted auth service and the caller's roles
are looked up server-side. Every check runs before any business logic.
"""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from restaurant_order_service.auth.session_validator import (
    AuthenticatedUser,
    AuthServiceClient,
)
from restaurant_order_service.repositories.store_repositories import UserRoleRepository
from restaurant_order_service.services.exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class SessionAuthenticator:
    """Builds FastAPI dependencies that resolve the calling user."""

    def __init__(self, auth_client: AuthServiceClient, role_repository: UserRoleRepository) -> None:
        self.auth_client = auth_client
        self.role_repository = role_repository

    async def authenticate(self, token: str) -> AuthenticatedUser | None:
        """Verify a token and attach the caller's server-side roles.

        Returns:
            AuthenticatedUser, or None if the token is invalid
        """
        user = await self.auth_client.get_user(token)
        if user is None:
            return None
        return user.model_copy(update={"roles": self.role_repository.get_roles(user.id)})

    async def optional_user(
        self, credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)
    ) -> AuthenticatedUser | None:
        """Resolve the caller when a token is present; anonymous otherwise.

        An invalid token is treated as anonymous on public endpoints.
        """
        if credentials is None:
            return None
        return await self.authenticate(credentials.credentials)

    async def require_user(
        self, credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)
    ) -> AuthenticatedUser:
        if credentials is None:
            raise AuthenticationError("Não autorizado", "Token de autenticação ausente")

        user = await self.authenticate(credentials.credentials)
        if user is None:
            raise AuthenticationError("Não autorizado", "Token inválido ou expirado")
        return user

    async def require_staff(
        self, credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)
    ) -> AuthenticatedUser:
        user = await self.require_user(credentials)
        if not user.is_staff:
            logger.info(f"User {user.id} denied staff access")
            raise AuthorizationError(
                "Acesso negado", "Apenas administradores e funcionários podem realizar esta ação"
            )
        return user

    async def require_admin(
        self, credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)
    ) -> AuthenticatedUser:
        user = await self.require_user(credentials)
        if not user.is_admin:
            logger.info(f"User {user.id} denied admin access")
            raise AuthorizationError("Acesso negado", "Apenas administradores")
        return user
