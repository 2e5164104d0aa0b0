"""
Firebase Authentication - ID token verification and password management
"""

import re
import time
from typing import Any, Dict, Optional

import httpx
import jwt
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from easyprop.core.config import settings
from easyprop.core.exceptions import (
    AuthenticationException, ConfigurationException, ValidationException,
)
from easyprop.core.logging import get_logger

logger = get_logger(__name__)

ISSUER_PREFIX = "https://securetoken.google.com/"

PASSWORD_ERRORS = {
    "INVALID_PASSWORD": "Current password is incorrect",
    "INVALID_LOGIN_CREDENTIALS": "Current password is incorrect",
    "WEAK_PASSWORD": "New password is too weak",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts, please try again later",
}


class AuthenticatedUser(BaseModel):
    """Identity extracted from a verified Firebase ID token"""
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    email_verified: bool = False
    phone_number: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.email:
            return self.email.split("@")[0]
        return "User"


class FirebaseAuthClient:
    """Verifies Firebase ID tokens and talks to the Identity Toolkit REST API"""

    def __init__(
        self,
        project_id: Optional[str] = None,
        api_key: Optional[str] = None,
        certs_url: Optional[str] = None,
        identity_url: Optional[str] = None,
    ):
        self.project_id = project_id or settings.FIREBASE_PROJECT_ID
        self.api_key = api_key or settings.FIREBASE_API_KEY
        self.certs_url = certs_url or settings.FIREBASE_CERTS_URL
        self.identity_url = identity_url or settings.FIREBASE_IDENTITY_URL
        self._certs: Dict[str, str] = {}
        self._certs_expire_at: float = 0.0

    async def _get_certificates(self) -> Dict[str, str]:
        if self._certs and time.time() < self._certs_expire_at:
            return self._certs

        async with httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT) as client:
            response = await client.get(self.certs_url)
            response.raise_for_status()

        max_age = 3600
        match = re.search(r"max-age=(\d+)", response.headers.get("cache-control", ""))
        if match:
            max_age = int(match.group(1))

        self._certs = response.json()
        self._certs_expire_at = time.time() + max_age
        logger.info("Fetched Firebase signing certificates", count=len(self._certs), max_age=max_age)
        return self._certs

    async def verify_id_token(self, token: str) -> AuthenticatedUser:
        """
        Verify a Firebase ID token

        Args:
            token: Raw JWT sent as the bearer credential

        Returns:
            AuthenticatedUser built from the token claims
        """
        if not self.project_id:
            raise ConfigurationException("FIREBASE_PROJECT_ID is not configured")

        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise AuthenticationException("Malformed ID token", details={"reason": str(e)})

        try:
            certs = await self._get_certificates()
        except httpx.HTTPError as e:
            logger.error("Failed to fetch Firebase certificates", error=str(e))
            raise AuthenticationException("Unable to verify ID token")

        cert = certs.get(header.get("kid", ""))
        if not cert:
            raise AuthenticationException("ID token signed with an unknown key")

        public_key = load_pem_x509_certificate(cert.encode("utf-8")).public_key()
        try:
            claims = jwt.decode(
                token,
                public_key,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=f"{ISSUER_PREFIX}{self.project_id}",
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationException("ID token has expired", error_code="TOKEN_EXPIRED")
        except jwt.PyJWTError as e:
            raise AuthenticationException("Invalid ID token", details={"reason": str(e)})

        uid = claims.get("sub") or claims.get("user_id")
        if not uid:
            raise AuthenticationException("ID token has no subject")

        return AuthenticatedUser(
            uid=uid,
            email=claims.get("email"),
            name=claims.get("name"),
            email_verified=bool(claims.get("email_verified", False)),
            phone_number=claims.get("phone_number"),
        )

    async def _identity_call(self, client: httpx.AsyncClient, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await client.post(
            f"{self.identity_url}/accounts:{method}",
            params={"key": self.api_key},
            json=payload,
        )
        if response.status_code >= 400:
            code = response.json().get("error", {}).get("message", "UNKNOWN")
            # Identity Toolkit appends detail after " : "
            code = code.split(" : ")[0].strip()
            message = PASSWORD_ERRORS.get(code, "Failed to change password")
            logger.warning("Identity Toolkit call failed", method=method, code=code)
            raise ValidationException(message, error_code=code)
        return response.json()

    async def change_password(self, email: str, current_password: str, new_password: str) -> Dict[str, Any]:
        """Re-authenticate with the current password, then set the new one"""
        if not self.api_key:
            raise ConfigurationException("FIREBASE_API_KEY is not configured")

        async with httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT) as client:
            signed_in = await self._identity_call(client, "signInWithPassword", {
                "email": email,
                "password": current_password,
                "returnSecureToken": True,
            })
            await self._identity_call(client, "update", {
                "idToken": signed_in["idToken"],
                "password": new_password,
                "returnSecureToken": True,
            })

        logger.info("Password changed", email=email)
        return {"success": True, "message": "Password updated successfully"}


firebase_auth = FirebaseAuthClient()
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationException("Authentication required")
    return await firebase_auth.verify_id_token(credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthenticatedUser]:
    if credentials is None or not credentials.credentials:
        return None
    try:
        return await firebase_auth.verify_id_token(credentials.credentials)
    except AuthenticationException as e:
        logger.info("Ignoring invalid credentials on public route", reason=e.message)
        return None
