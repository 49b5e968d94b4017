"""
Identity provider: accounts, signed tokens and identity-changed notifications.

Accounts live in the "identities" collection (email + salted password hash),
apart from the application profile in "users". Tokens are HS256 JWTs; signing
out stores the token's jti in "revoked_tokens".
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import jwt

import database
import settings
from errors import AuthenticationFailure, ValidationError

logger = logging.getLogger(__name__)

IDENTITIES = "identities"
REVOKED = "revoked_tokens"


def hash_password(password: str, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(8)
    return salt + "$" + hashlib.sha256((salt + password).encode()).hexdigest()


def verify_password(password: str, stored: str) -> bool:
    try:
        salt, _ = stored.split("$")
    except ValueError:
        return False
    return secrets.compare_digest(hash_password(password, salt), stored)


class Identity:
    def __init__(self, uid: str, email: str, jti: Optional[str] = None, expires_at: Optional[datetime] = None):
        self.uid = uid
        self.email = email
        self.jti = jti
        self.expires_at = expires_at

    def __repr__(self):
        return f"Identity(uid={self.uid!r}, email={self.email!r})"


IdentityListener = Callable[[Optional[Identity]], None]


class IdentityProvider:
    def __init__(self, secret: str = None, algorithm: str = None, ttl_days: int = None):
        self.secret = secret or settings.JWT_SECRET
        self.algorithm = algorithm or settings.JWT_ALGO
        self.ttl = timedelta(days=ttl_days or settings.TOKEN_TTL_DAYS)
        self._listeners: List[IdentityListener] = []

    # ---- notifications ----

    def on_identity_changed(self, callback: IdentityListener) -> Callable[[], None]:
        """Register ``callback``; it receives the new Identity, or None on sign-out.

        Returns a function that unregisters the callback.
        """
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, identity: Optional[Identity]):
        for listener in list(self._listeners):
            listener(identity)

    # ---- tokens ----

    def _issue(self, identity: Identity) -> str:
        exp = datetime.now(timezone.utc) + self.ttl
        payload = {"sub": identity.uid, "email": identity.email, "jti": secrets.token_hex(12), "exp": exp}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def _decode(self, token: str) -> dict:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationFailure("Token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationFailure("Invalid token")

    def verify(self, token: str) -> Identity:
        payload = self._decode(token)
        if not payload.get("sub") or not payload.get("jti"):
            raise AuthenticationFailure("Invalid token payload")
        if database.get_documents(REVOKED, {"jti": payload["jti"]}, limit=1):
            raise AuthenticationFailure("Token revoked")
        expires_at = datetime.fromtimestamp(payload["exp"], timezone.utc) if payload.get("exp") else None
        return Identity(payload["sub"], payload.get("email"), payload["jti"], expires_at)

    # ---- account operations ----

    def create_account(self, email: str, password: str) -> str:
        email = email.lower()
        if database.get_documents(IDENTITIES, {"email": email}, limit=1):
            raise ValidationError("Email already registered")
        uid = database.create_document(IDENTITIES, {"email": email, "password_hash": hash_password(password)})
        identity = Identity(uid, email)
        self._notify(identity)
        return self._issue(identity)

    def sign_in(self, email: str, password: str) -> str:
        email = email.lower()
        found = database.get_documents(IDENTITIES, {"email": email}, limit=1)
        if not found or not verify_password(password, found[0].get("password_hash", "")):
            raise AuthenticationFailure("Invalid credentials")
        identity = Identity(found[0]["id"], email)
        self._notify(identity)
        return self._issue(identity)

    def sign_out(self, token: str):
        payload = self._decode(token)
        database.create_document(REVOKED, {"jti": payload.get("jti"), "uid": payload.get("sub")})
        self._notify(None)


def log_identity_change(identity: Optional[Identity]):
    if identity is None:
        logger.info("Identity signed out")
    else:
        logger.info("Identity signed in: %s", identity.email)
