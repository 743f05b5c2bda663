"""
Identity resolution for order requests.

Resolution order:
1. Bearer token  -> identity provider profile
2. Client-supplied userData
3. Fixed guest identity

Failures at step 1, including a profile that cannot be mapped, are logged and
fall through; resolve() never raises.
"""
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from payment_relay.providers.clerk import ClerkClient, IdentityLookupError

logger = structlog.get_logger(component="identity_resolver")


GUEST_USER_ID = "guest_user"
GUEST_FIRST_NAME = "Guest"
GUEST_LAST_NAME = "User"
GUEST_EMAIL = "guest@example.com"
GUEST_PHONE = "9999999999"

FALLBACK_CUSTOMER_NAME = "User"
FALLBACK_CUSTOMER_EMAIL = "demo@example.com"
FALLBACK_CUSTOMER_PHONE = "9999999999"


class ResolvedVia(str, Enum):
    TOKEN = "token"
    CLIENT_DATA = "client_data"
    GUEST = "guest"


class ResolvedUser:
    def __init__(
        self,
        id: str,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        phone: Optional[str],
        via: ResolvedVia,
        username: Optional[str] = None,
    ):
        self.id = id
        self.first_name = first_name
        self.last_name = last_name
        self.email = email
        self.phone = phone
        self.via = via
        self.username = username

    def customer_details(self) -> Dict[str, str]:
        """Customer block shared by the gateway request and the API response."""
        if self.first_name:
            name = f"{self.first_name} {self.last_name or ''}".strip()
        else:
            name = self.username or FALLBACK_CUSTOMER_NAME

        phone = self.phone.replace("+91", "") if self.phone else FALLBACK_CUSTOMER_PHONE

        return {
            "customer_id": self.id or GUEST_USER_ID,
            "customer_name": name,
            "customer_email": self.email or FALLBACK_CUSTOMER_EMAIL,
            "customer_phone": phone,
        }


def extract_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    if not auth_header:
        return None
    token = auth_header.replace("Bearer ", "", 1).strip()
    return token or None


def split_name(full_name: Optional[str]):
    """Split on the first space: ("Asha Rani Iyer") -> ("Asha", "Rani Iyer")."""
    if not isinstance(full_name, str) or not full_name.strip():
        return None, ""
    first, _, rest = full_name.strip().partition(" ")
    return first, rest.strip()


def _first_of(items: Any, key: str) -> Optional[str]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        value = items[0].get(key)
        if isinstance(value, (str, int)) and not isinstance(value, bool) and value:
            return str(value)
    return None


def _optional_str(profile: Dict[str, Any], key: str) -> Optional[str]:
    value = profile.get(key)
    if value is not None and not isinstance(value, str):
        raise IdentityLookupError(f"Identity profile field '{key}' is not a string")
    return value


def from_profile(profile: Dict[str, Any]) -> ResolvedUser:
    """
    Raises:
        IdentityLookupError: when the profile isn't an object with an id or its
        name fields aren't strings.
    """
    if not isinstance(profile, dict) or not profile.get("id"):
        raise IdentityLookupError("Identity profile has no id")

    first_name = _optional_str(profile, "first_name")
    last_name = _optional_str(profile, "last_name")
    username = _optional_str(profile, "username")
    if not first_name and username:
        first_name, last_name = split_name(username)

    return ResolvedUser(
        id=str(profile["id"]),
        first_name=first_name,
        last_name=last_name or "",
        email=_first_of(profile.get("email_addresses"), "email_address"),
        phone=_first_of(profile.get("phone_numbers"), "phone_number"),
        via=ResolvedVia.TOKEN,
        username=username,
    )


def from_client_data(client_user: Dict[str, Any]) -> ResolvedUser:
    first_name, last_name = split_name(client_user.get("customerName"))
    phone = client_user.get("customerPhone")
    return ResolvedUser(
        id=client_user.get("customerId") or GUEST_USER_ID,
        first_name=first_name or GUEST_FIRST_NAME,
        last_name=last_name,
        email=client_user.get("customerEmail"),
        phone=str(phone) if phone else None,
        via=ResolvedVia.CLIENT_DATA,
    )


def guest_user() -> ResolvedUser:
    return ResolvedUser(
        id=GUEST_USER_ID,
        first_name=GUEST_FIRST_NAME,
        last_name=GUEST_LAST_NAME,
        email=GUEST_EMAIL,
        phone=GUEST_PHONE,
        via=ResolvedVia.GUEST,
    )


class IdentityResolver:
    def __init__(self, client: ClerkClient):
        self.client = client

    async def resolve(
        self,
        bearer_token: Optional[str] = None,
        client_user: Optional[Dict[str, Any]] = None,
    ) -> ResolvedUser:
        if bearer_token:
            try:
                profile = await self.client.get_current_user(bearer_token)
                return from_profile(profile)
            except IdentityLookupError as e:
                logger.warning("identity_lookup_failed", error=str(e), has_client_data=bool(client_user))

        if client_user:
            logger.info("identity_from_client_data", customer_id=client_user.get("customerId"))
            return from_client_data(client_user)

        logger.info("identity_guest_fallback")
        return guest_user()
