"""
Authentication for the FastAPI API.

Bearer tokens are Firebase ID tokens. Verification reports its outcome as a
VerificationResult; only the FastAPI dependencies turn a failure into an
HTTP 401.
"""

import json
from typing import Any, Dict, Optional

import firebase_admin
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth, credentials
from firebase_admin import exceptions as firebase_exceptions
from pydantic import BaseModel, Field

from library.models import ErrorKind
from utilities.config import LibraryConfig

logger = structlog.get_logger(__name__)

# Missing or non-Bearer headers are reported by get_current_user, not here
security = HTTPBearer(auto_error=False)

# Set at application startup
identity_verifier: Optional["FirebaseIdentityVerifier"] = None


class VerificationResult(BaseModel):
    """Outcome of verifying a bearer token."""
    user_id: Optional[str] = Field(None, description="Verified user identifier")
    claims: Dict[str, Any] = Field(default_factory=dict, description="Decoded token claims")
    error: Optional[ErrorKind] = Field(None, description="Failure kind, if any")
    message: Optional[str] = Field(None, description="Failure message, if any")

    @property
    def ok(self) -> bool:
        return self.error is None and self.user_id is not None

    @classmethod
    def failure(cls, message: str) -> "VerificationResult":
        return cls(error=ErrorKind.UNAUTHORIZED, message=message)


class FirebaseIdentityVerifier:
    """Verifies Firebase ID tokens and looks up Firebase users."""

    def __init__(self, app: Optional[firebase_admin.App] = None):
        """
        Initialize the verifier.

        Args:
            app: Firebase app to use; None means the default app
        """
        self.app = app

    @classmethod
    def from_config(cls, config: LibraryConfig) -> "FirebaseIdentityVerifier":
        """
        Initialize (once per process) the default Firebase app from config.

        Credentials come from a service-account key file, else a
        service-account JSON string, else application default credentials.

        Args:
            config: Library configuration

        Returns:
            Verifier bound to the default Firebase app
        """
        try:
            return cls(firebase_admin.get_app())
        except ValueError:
            pass

        if not config.has_firebase_credentials():
            credential = credentials.ApplicationDefault()
            source = "application default credentials"
        elif config.firebase_credentials_path:
            credential = credentials.Certificate(config.firebase_credentials_path)
            source = "service account key file"
        else:
            credential = credentials.Certificate(json.loads(config.firebase_credentials_json))
            source = "service account JSON"

        options = {"projectId": config.firebase_project_id} if config.firebase_project_id else None
        app = firebase_admin.initialize_app(credential, options)
        logger.info("Firebase initialized", source=source, project_id=config.firebase_project_id)
        return cls(app)

    def verify_token(self, token: str) -> VerificationResult:
        """
        Verify a Firebase ID token.

        Args:
            token: Raw ID token from the Authorization header

        Returns:
            VerificationResult with the user id, or an UNAUTHORIZED failure
        """
        try:
            claims = auth.verify_id_token(token, app=self.app)
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            logger.warning("Failed to verify ID token", error=str(e))
            return VerificationResult.failure(f"Token verification failed: {e}")

        logger.debug("Token verified", user_id=claims.get("uid"))
        return VerificationResult(user_id=claims.get("uid"), claims=claims)

    def get_user(self, uid: str) -> Optional[Dict[str, Any]]:
        """
        Look up a Firebase user profile.

        Args:
            uid: Firebase user id

        Returns:
            Profile dictionary, or None if the lookup failed
        """
        try:
            record = auth.get_user(uid, app=self.app)
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            logger.warning("Failed to get user", user_id=uid, error=str(e))
            return None

        return {
            "uid": record.uid,
            "email": record.email or "N/A",
            "displayName": record.display_name or "N/A",
            "emailVerified": record.email_verified,
            "creationTime": record.user_metadata.creation_timestamp,
        }


def configure_identity_verifier(verifier: Optional[FirebaseIdentityVerifier]) -> None:
    """Install the verifier used by the request dependencies."""
    global identity_verifier
    identity_verifier = verifier


def get_identity_verifier() -> Optional[FirebaseIdentityVerifier]:
    return identity_verifier


def authenticate(credentials: Optional[HTTPAuthorizationCredentials]) -> VerificationResult:
    """
    Verify the credentials of a request.

    Args:
        credentials: Parsed Bearer credentials, or None if absent/malformed

    Returns:
        VerificationResult; never raises
    """
    if credentials is None or not credentials.credentials:
        return VerificationResult.failure("Missing or invalid Authorization header")
    if identity_verifier is None:
        logger.error("Token verification attempted before the identity verifier was configured")
        return VerificationResult.failure("Authentication is not available")
    return identity_verifier.verify_token(credentials.credentials)


def _unauthorized(result: VerificationResult) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=result.message,
        headers={"WWW-Authenticate": "Bearer"},
    )


# Sync dependencies: FastAPI runs them in its threadpool, so the blocking
# Firebase calls stay off the event loop.
def get_verified_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> VerificationResult:
    """Dependency returning the full verification result of the caller."""
    result = authenticate(credentials)
    if not result.ok:
        raise _unauthorized(result)
    return result


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """Dependency returning the authenticated caller's user id."""
    return get_verified_identity(credentials).user_id
