"""
Caller identity for the marketplace API

Decodes bearer JWTs issued by the external identity provider and turns
them into an explicit Caller (user id + buyer class) that routes pass
into the core. This module never issues or stores credentials.
"""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from marketplace.core.config import settings
from marketplace.domain.product import BuyerClass


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)


class Caller(BaseModel):
    """User data extracted from JWT token"""
    id: str
    email: Optional[str] = None
    buyer_class: BuyerClass = BuyerClass.RETAIL

    @property
    def is_operator(self) -> bool:
        return self.buyer_class == BuyerClass.OPERATOR


def decode_token(token: str) -> dict:
    """
    Decode and validate an identity-provider JWT.

    Expected payload:
    {
        "sub": "user_id",
        "email": "buyer@example.com",
        "role": "customer" | "b2b" | "supplier" | "admin",
        "exp": 1234567890
    }
    """
    if not settings.AUTH_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="AUTH_SECRET is not configured"
        )

    try:
        return jwt.decode(
            token,
            settings.AUTH_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False}
        )
    except JWTError as e:
        error_msg = str(e).lower()
        if "expired" in error_msg:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"}
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"}
        )


async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Caller:
    """
    Dependency that extracts the current caller from the bearer token.

    Usage:
        @router.post("/checkout")
        async def checkout(caller: Caller = Depends(get_current_caller)):
            ...
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    payload = decode_token(credentials.credentials)

    user_id = payload.get("id") or payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload: missing user id",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return Caller(
        id=str(user_id),
        email=payload.get("email"),
        buyer_class=BuyerClass.from_role(payload.get("role")),
    )


async def require_operator(caller: Caller = Depends(get_current_caller)) -> Caller:
    """Only platform operators may drive order and KYC transitions"""
    if not caller.is_operator:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. Required role: admin, your role: {caller.buyer_class.value}"
        )
    return caller


async def require_seller(caller: Caller = Depends(get_current_caller)) -> Caller:
    """Suppliers and operators may edit product pricing"""
    if caller.buyer_class not in (BuyerClass.SUPPLIER, BuyerClass.OPERATOR):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. Required role: supplier, your role: {caller.buyer_class.value}"
        )
    return caller
