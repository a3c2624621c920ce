from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional
from dabil.database import get_db
from dabil.repositories.ledger import LedgerRepository
from dabil.utils.security import decode_token
from dabil.models.user import User, UserRole
from dabil.models.restaurant import RestaurantStaff

http_bearer = HTTPBearer(auto_error=False)


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> Dict[str, Any]:
    if credentials is None or not credentials.credentials:
        raise _credentials_exception("Authentication required")

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise _credentials_exception("Invalid or expired token")
    return payload


def get_ledger_repository(db: Session = Depends(get_db)) -> LedgerRepository:
    return LedgerRepository(db)


async def get_current_user(
    payload: Dict[str, Any] = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated customer, manager or admin"""
    user_id = payload.get("sub")
    if user_id is None:
        raise _credentials_exception()

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _credentials_exception()

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is suspended"
        )

    return user


async def get_current_staff(
    payload: Dict[str, Any] = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> RestaurantStaff:
    """Get current POS staff member from a staff token"""
    staff_id = payload.get("staffId")
    if staff_id is None or payload.get("type") != "staff":
        raise _credentials_exception()

    staff = db.query(RestaurantStaff).filter(RestaurantStaff.id == staff_id).first()
    if staff is None or not staff.is_active:
        raise _credentials_exception()

    return staff


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


async def require_manager(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.RESTAURANT_MANAGER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Restaurant manager access required"
        )
    return current_user


async def require_admin_or_manager(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin and current_user.role != UserRole.RESTAURANT_MANAGER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin or restaurant manager access required"
        )
    return current_user
