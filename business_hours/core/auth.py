from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import logging

from fastapi import Depends, HTTPException, Path, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from business_hours.core.config import settings
from business_hours.db.business import get_business_by_id

logger = logging.getLogger(__name__)

# Tokens are issued by the account service; this service only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token."""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=30)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )

    return encoded_jwt

async def get_current_user(token: str = Depends(oauth2_scheme)) -> Dict[str, Any]:
    """Get current user from token.

    The token subject is the user id; an optional `role` claim marks admins.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        subject: str = payload.get("sub")
        if subject is None:
            raise credentials_exception
    except JWTError as jwt_error:
        logger.info(f"JWT decode error: {jwt_error}")
        raise credentials_exception

    return {"_id": subject, "role": payload.get("role")}

async def get_owned_business(
    business_id: str = Path(..., title="The ID of the business"),
    current_user: dict = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    Resolve the business from the path and make sure the caller owns it.
    Only the owner (or an admin) may change its schedule.
    """
    try:
        business = await get_business_by_id(business_id)
    except Exception as db_error:
        logger.error(f"Business lookup failed for {business_id}: {db_error}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Error retrieving business data"
        )

    if not business:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Business not found"
        )

    if current_user.get("role") != "admin" and str(business.get("ownerId")) != str(current_user["_id"]):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the business owner can manage this schedule"
        )

    return business
