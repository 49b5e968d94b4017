"""
Profile resolution: maps a signed-in identity to its "users" document.

Profiles created here always get role "user". Admin profiles must already
exist in the store (see the /seed endpoint).
"""

import logging
from typing import Optional, Tuple

import database
from errors import ProfileNotFound
from identity import IdentityProvider
from schemas import Profile

logger = logging.getLogger(__name__)

USERS = "users"


def get_profile(uid: str) -> Optional[dict]:
    found = database.get_documents(USERS, {"uid": uid}, limit=1)
    return found[0] if found else None


def resolve_or_create(uid: str, email: str, signup_fields: Optional[dict] = None) -> dict:
    existing = get_profile(uid)
    if existing:
        return existing
    fields = dict(signup_fields or {})
    # role is never taken from self-service input
    fields.pop("role", None)
    profile = Profile(
        uid=uid,
        email=email,
        name=fields.get("name") or email.split("@")[0],
        phone=fields.get("phone"),
        address=fields.get("address"),
    )
    database.create_document(USERS, profile)
    logger.info("Created profile for %s", email)
    return get_profile(uid)


def signup(provider: IdentityProvider, email: str, password: str, name: str,
           phone: Optional[str] = None, address: Optional[str] = None) -> Tuple[str, dict]:
    token = provider.create_account(email, password)
    identity = provider.verify(token)
    profile = resolve_or_create(identity.uid, identity.email, {"name": name, "phone": phone, "address": address})
    return token, profile


def login(provider: IdentityProvider, email: str, password: str) -> Tuple[str, dict]:
    token = provider.sign_in(email, password)
    identity = provider.verify(token)
    profile = resolve_or_create(identity.uid, identity.email)
    if profile.get("role") != "user":
        provider.sign_out(token)
        raise ProfileNotFound("Invalid user credentials")
    return token, profile


def admin_login(provider: IdentityProvider, email: str, password: str) -> Tuple[str, dict]:
    token = provider.sign_in(email, password)
    identity = provider.verify(token)
    profile = get_profile(identity.uid)
    if profile is None or profile.get("role") != "admin":
        provider.sign_out(token)
        raise ProfileNotFound("Admin profile not found" if profile is None else "Admin access required")
    return token, profile
