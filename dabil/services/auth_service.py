from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import timedelta
import logging
from dabil.models.user import User, UserRole
from dabil.schemas.user import UserCreate
from dabil.repositories.ledger import LedgerRepository
from dabil.exceptions import Conflict, ValidationFailed
from dabil.services import loyalty_service
from dabil.utils.security import get_password_hash, verify_password, create_access_token
from dabil.config import settings

logger = logging.getLogger(__name__)


def create_account(
    db: Session,
    email: str,
    name: str,
    password: str,
    phone: str = None,
    role: UserRole = UserRole.CUSTOMER,
) -> User:
    """
    Create a user together with its wallet and loyalty account.
    The caller owns the transaction; nothing is committed here.
    """
    email = email.lower()
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email already registered")

    user = User(
        email=email,
        name=name,
        phone=phone,
        password_hash=get_password_hash(password),
        role=role,
    )
    db.add(user)
    db.flush()

    repo = LedgerRepository(db)
    repo.create_wallet(user.id, currency=settings.CURRENCY)
    repo.create_loyalty_account(user.id)
    return user


def register_user(db: Session, user_data: UserCreate) -> User:
    """Register a new customer"""
    repo = LedgerRepository(db)
    with repo.atomic():
        user = create_account(
            db,
            email=user_data.email,
            name=user_data.name,
            password=user_data.password,
            phone=user_data.phone,
        )
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    """Authenticate user and return user object"""
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is suspended"
        )

    return user


def create_tokens(user: User) -> dict:
    access_token = create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role.value},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"token": access_token}


def get_profile(db: Session, user: User) -> dict:
    """User with wallet and loyalty summary"""
    repo = LedgerRepository(db)
    wallet = repo.get_wallet(user.id)
    loyalty = repo.get_loyalty_account(user.id)
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "phone": user.phone,
        "role": user.role.value,
        "status": user.status.value,
        "email_verified": user.email_verified,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "wallet": {
            "balance": float(wallet.balance),
            "currency": wallet.currency,
        } if wallet else None,
        "loyalty": {
            "points_balance": loyalty.points_balance,
            "lifetime_points_earned": loyalty.lifetime_points_earned,
            "tier": loyalty.current_tier.value,
            "next_tier": loyalty_service.next_tier(loyalty.lifetime_points_earned),
        } if loyalty else None,
    }


def update_profile(db: Session, user: User, name: str, email: str) -> User:
    email = email.lower()
    if email != user.email:
        taken = db.query(User).filter(User.email == email, User.id != user.id).first()
        if taken:
            raise Conflict("Email already in use")

    user.name = name.strip()
    user.email = email
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str):
    if not verify_password(current_password, user.password_hash):
        raise ValidationFailed("Current password is incorrect")
    if current_password == new_password:
        raise ValidationFailed("New password must be different from the current password")

    user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info(f"Password changed for user {user.id}")
