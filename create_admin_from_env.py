"""
Script to create the platform admin from environment variables.
Run once after migrations when ADMIN_EMAIL and ADMIN_PASSWORD are set.
"""
import logging
from dabil.database import SessionLocal
from dabil.models.user import User, UserRole
from dabil.exceptions import Conflict
from dabil.services.auth_service import create_account
from dabil.config import settings

logger = logging.getLogger(__name__)


def create_admin_from_env() -> bool:
    """Create the admin user with its wallet and loyalty account"""
    email = settings.ADMIN_EMAIL.strip().lower()
    password = settings.ADMIN_PASSWORD.strip()
    name = settings.ADMIN_NAME.strip() or "Admin"

    if not email or not password:
        return False  # No credentials provided, skip creation

    if len(password) < 6:
        logger.warning("Admin password too short, skipping admin creation")
        return False

    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            return False  # Admin already exists

        admin = create_account(db, email=email, name=name, password=password, role=UserRole.SUPER_ADMIN)
        admin.email_verified = True
        db.commit()

        print(f"[SUCCESS] Admin user created from environment variables!")
        print(f"   Email: {admin.email}")
        print(f"   Role: {admin.role.value}")
        return True
    except Conflict:
        db.rollback()
        return False
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_admin_from_env()
