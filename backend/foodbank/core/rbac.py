"""Role-Based Access Control (RBAC) utilities."""

from enum import Enum
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status

from foodbank.core.security import decode_access_token
from foodbank.db.session import DbSession


class UserRole(str, Enum):
    """User roles for RBAC."""

    ADMIN = "admin"
    DONOR = "donor"
    BENEFICIARY = "beneficiary"


class TokenData:
    """Decoded token data.

    Attributes:
        user_id: The user's database ID.
        email: The user's email address.
        role: The user's role.
    """

    def __init__(self, user_id: int, email: str, role: UserRole):
        self.user_id = user_id
        self.email = email
        self.role = role


def _extract_payload(request: Request) -> Optional[dict]:
    """Read the token from the Authorization header, falling back to the cookie."""
    payload = None

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1]
        if token:
            payload = decode_access_token(token)

    if payload is None:
        cookie_token = request.cookies.get("access_token")
        if cookie_token:
            payload = decode_access_token(cookie_token)

    return payload


async def get_current_user(request: Request, db: DbSession) -> TokenData:
    """Get the current authenticated user from JWT token.

    Checks in order:
    1. Authorization: Bearer <token> header
    2. access_token cookie (HttpOnly)
    """
    payload = _extract_payload(request)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    email = payload.get("email")
    role = payload.get("role")

    if user_id is None or email is None or role is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        user_role = UserRole(role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid role in token",
        )

    from foodbank.models.user import User

    user = db.query(User).filter(User.id == int(user_id)).first()
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is disabled",
        )

    return TokenData(user_id=int(user_id), email=email, role=user_role)


def require_role(*allowed: UserRole):
    """Dependency to require one of the given roles."""

    async def role_checker(
        current_user: Annotated[TokenData, Depends(get_current_user)]
    ) -> TokenData:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role {' or '.join(r.value for r in allowed)}",
            )
        return current_user

    return role_checker


RequireAdmin = Annotated[TokenData, Depends(require_role(UserRole.ADMIN))]
CurrentUser = Annotated[TokenData, Depends(get_current_user)]
