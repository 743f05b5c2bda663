from typing import Any, Dict, Optional

import httpx
import structlog


class IdentityLookupError(Exception):
    """The identity provider could not produce a usable profile."""


class ClerkClient:
    """Resolves a session token to the signed-in user's profile (`GET /v1/me`)."""

    def __init__(
        self,
        me_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.me_url = me_url
        self.timeout = timeout
        self._transport = transport
        self._logger = structlog.get_logger(component="clerk_client")

    async def get_current_user(self, token: str) -> Dict[str, Any]:
        """
        Raises:
            IdentityLookupError: on transport errors, non-2xx responses or a
            body that isn't a profile object.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    self.me_url,
                    headers={"Authorization": f"Bearer {token}"},
                )
            response.raise_for_status()
            profile = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise IdentityLookupError(f"Failed to fetch user info from identity provider: {e}") from e

        if not isinstance(profile, dict) or not profile.get("id"):
            raise IdentityLookupError("Identity provider returned a malformed profile")

        self._logger.info("identity_profile_received", user_id=profile["id"])
        return profile
