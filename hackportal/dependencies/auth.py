"""Resolve the request user through the external identity service."""
import enum
import logging
from typing import Annotated

import httpx
from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, ValidationError as PydanticValidationError

from hackportal.config import Settings

logger = logging.getLogger(__name__)

AUTH_COOKIE_NAME = "Authorization"


class AuthLevel(enum.IntEnum):
    """Identity service access levels. Higher values include the lower ones."""

    UNVERIFIED = 0
    APPLICANT = 1
    ATTENDEE = 2
    VOLUNTEER = 3
    ORGANISER = 4


class RequestUser(BaseModel):
    auth_id: str
    name: str
    email: str
    auth_level: AuthLevel


class IdentityServiceClient:
    """Thin async client for the identity service's current-user endpoint."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    async def get_current_user(self, token: str, origin_url: str) -> RequestUser | None:
        """
        Look up the user owning ``token``.

        Returns:
            The user, or None when the token is rejected or the service is unreachable
        """
        headers = {"Authorization": token, "Referer": origin_url}
        try:
            async with httpx.AsyncClient(
                base_url=self._settings.auth_url,
                timeout=self._settings.auth_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get("/api/v1/users/me", headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Identity service request failed", extra={"error": str(e)})
            return None

        if response.status_code != status.HTTP_200_OK:
            return None

        try:
            payload = response.json()
            user = payload.get("user") if isinstance(payload, dict) else None
            if not isinstance(user, dict):
                raise ValueError("Reply has no user object")
            return RequestUser(
                auth_id=str(user.get("_id") or user.get("id")),
                name=user.get("name", ""),
                email=user.get("email", ""),
                auth_level=AuthLevel(int(user.get("auth_level", AuthLevel.UNVERIFIED))),
            )
        except (ValueError, TypeError, PydanticValidationError) as e:
            logger.warning("Unreadable identity service reply", extra={"error": str(e)})
            return None


def get_identity_client(request: Request) -> IdentityServiceClient:
    client = getattr(request.app.state, "identity_client", None)
    if client is None:
        raise HTTPException(512, "Identity service is not configured")
    return client


async def get_current_user(
    request: Request,
    client: Annotated[IdentityServiceClient, Depends(get_identity_client)],
) -> RequestUser:
    """Extract the session token from the cookie or header and resolve the user."""
    token = request.cookies.get(AUTH_COOKIE_NAME) or request.headers.get("Authorization")
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    user = await client.get_current_user(token, str(request.url))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    # Read by the request logging middleware
    request.state.auth_id = user.auth_id
    return user


CurrentUserDep = Annotated[RequestUser, Depends(get_current_user)]


async def get_current_organiser(current_user: CurrentUserDep) -> RequestUser:
    if current_user.auth_level < AuthLevel.ORGANISER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organiser access required",
        )
    return current_user


OrganiserDep = Annotated[RequestUser, Depends(get_current_organiser)]
