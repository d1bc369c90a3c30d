"""Firebase JWT verification and organization-scoped access dependencies."""

import logging
from typing import Any, Optional
from uuid import UUID

import firebase_admin
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth, credentials
from firebase_admin import exceptions as firebase_exceptions
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from estatedesk.core.config import get_settings
from estatedesk.core.context import TenantContext
from estatedesk.core.database import get_db
from estatedesk.models.enums import OrgRole

logger = logging.getLogger(__name__)

security = HTTPBearer()

ADMIN_ROLES = frozenset({OrgRole.ORG_OWNER.value, OrgRole.ORG_ADMIN.value})


def _ensure_firebase_app() -> None:
    """Initialize the Firebase Admin SDK on first use."""
    if firebase_admin._apps:
        return
    settings = get_settings()
    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
    if settings.google_application_credentials:
        cred = credentials.Certificate(settings.google_application_credentials)
        firebase_admin.initialize_app(cred, options)
    else:
        firebase_admin.initialize_app(options=options)


class AuthenticatedUser:
    """Represents an authenticated user from Firebase JWT."""

    def __init__(
        self,
        uid: str,
        email: Optional[str] = None,
        email_verified: bool = False,
        claims: Optional[dict[str, Any]] = None,
    ):
        self.uid = uid
        self.email = email
        self.email_verified = email_verified
        self.claims = claims or {}
        self.db_user_id: Optional[UUID] = None
        self.org_id: Optional[UUID] = None
        self.org_role: Optional[str] = None

    def tenant_context(self) -> TenantContext:
        """Tenant scope for service calls made on behalf of this user."""
        if self.org_id is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Organization membership required",
            )
        return TenantContext(org_id=self.org_id, user_id=self.db_user_id)


async def verify_firebase_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthenticatedUser:
    """Verify Firebase JWT and return authenticated user.

    Tokens are only verified here, never minted.
    """
    _ensure_firebase_app()
    token = credentials.credentials

    try:
        decoded_token = auth.verify_id_token(token)
    except auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except auth.InvalidIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (ValueError, firebase_exceptions.FirebaseError) as e:
        logger.warning(f"[AUTH] Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token verification failed",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        email_verified=decoded_token.get("email_verified", False),
        claims=decoded_token,
    )

async def get_current_user(
    auth_user: AuthenticatedUser = Depends(verify_firebase_token),
    db: AsyncSession = Depends(get_db),
) -> AuthenticatedUser:
    """Resolve the Firebase identity to a local user and its organization role.

    A user with several memberships acts in the oldest one.
    """
    from estatedesk.models.org import OrgMembership, User

    row = (
        await db.execute(
            select(User.id, OrgMembership.org_id, OrgMembership.role)
            .outerjoin(OrgMembership, OrgMembership.user_id == User.id)
            .where(User.firebase_uid == auth_user.uid, User.is_active.is_(True))
            .order_by(OrgMembership.created_at)
            .limit(1)
        )
    ).first()

    if row is None:
        logger.debug(f"[AUTH] No active user for uid {auth_user.uid}")
        return auth_user

    auth_user.db_user_id = row.id
    if row.org_id is not None:
        auth_user.org_id = row.org_id
        auth_user.org_role = row.role.value
    return auth_user


def _check_membership(user: AuthenticatedUser, roles: Optional[frozenset[str]] = None) -> AuthenticatedUser:
    if not user.org_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization membership required",
        )
    if roles is not None and user.org_role not in roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user


def require_org_member(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Any role in an organization may view and move units."""
    return _check_membership(current_user)


def require_org_admin(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Deleting units and properties is reserved to owners and admins."""
    return _check_membership(current_user, ADMIN_ROLES)
