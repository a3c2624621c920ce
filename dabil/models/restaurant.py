from sqlalchemy import Column, String, Integer, Numeric, Boolean, DateTime, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship
import uuid
import enum
from datetime import datetime
from dabil.database import Base
from dabil.models.types import ValueEnum


class RestaurantType(str, enum.Enum):
    QSR = "QSR"
    CASUAL = "Casual"
    LUXURY = "Luxury"
    FAST_FOOD = "Fast Food"
    FINE_DINING = "Fine Dining"


class RestaurantStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class MenuItemStatus(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class StaffRole(str, enum.Enum):
    MANAGER = "manager"
    CASHIER = "cashier"
    WAITER = "waiter"
    CHEF = "chef"


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    restaurant_type = Column(ValueEnum(RestaurantType), nullable=False)
    cuisine_type = Column(String(100), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    logo_url = Column(String(500), nullable=True)
    owner_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True, index=True)
    status = Column(ValueEnum(RestaurantStatus, length=20), default=RestaurantStatus.ACTIVE, nullable=False)
    qr_code = Column(Text, nullable=True)  # SVG data URI of the check-in link
    onboarded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="restaurant")
    menu_items = relationship("MenuItem", back_populates="restaurant", cascade="all, delete-orphan", order_by="MenuItem.category, MenuItem.sort_order")
    staff = relationship("RestaurantStaff", back_populates="restaurant", cascade="all, delete-orphan")
    sessions = relationship("DiningSession", back_populates="restaurant", cascade="all, delete-orphan")


class MenuItem(Base):
    __tablename__ = "menu_items"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_menu_items_price_positive"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    restaurant_id = Column(String(36), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    category = Column(String(100), nullable=True)
    image_url = Column(String(500), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    status = Column(ValueEnum(MenuItemStatus, length=20), default=MenuItemStatus.ACTIVE, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    restaurant = relationship("Restaurant", back_populates="menu_items")

    @property
    def is_orderable(self) -> bool:
        return self.is_available and self.status == MenuItemStatus.ACTIVE


class RestaurantStaff(Base):
    """POS accounts; they log in separately from customer users."""
    __tablename__ = "restaurant_staff"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    restaurant_id = Column(String(36), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    role = Column(ValueEnum(StaffRole, length=20), nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    restaurant = relationship("Restaurant", back_populates="staff")
