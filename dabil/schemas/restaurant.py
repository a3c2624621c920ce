from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from dabil.models.restaurant import RestaurantType


class RestaurantCreate(BaseModel):
    """Admin onboarding: creates the restaurant and its owner account"""
    name: str = Field(..., min_length=1, max_length=255)
    restaurant_type: RestaurantType
    cuisine_type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    email: EmailStr  # Owner login
    password: str = Field(..., min_length=6)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Restaurant name is required")
        return value


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0, decimal_places=2)
    category: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: int = 0


class MenuItemResponse(BaseModel):
    id: str
    restaurant_id: str
    name: str
    description: Optional[str] = None
    price: float
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_available: bool
    status: str
    sort_order: int

    @classmethod
    def from_item(cls, item) -> "MenuItemResponse":
        return cls(
            id=item.id,
            restaurant_id=item.restaurant_id,
            name=item.name,
            description=item.description,
            price=float(item.price),
            category=item.category,
            image_url=item.image_url,
            is_available=item.is_available,
            status=item.status.value,
            sort_order=item.sort_order,
        )


class RestaurantResponse(BaseModel):
    id: str
    name: str
    slug: str
    restaurant_type: str
    cuisine_type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    logo_url: Optional[str] = None
    status: str
    qr_code: Optional[str] = None
    owner_user_id: Optional[str] = None
    onboarded_at: Optional[datetime] = None
    menu_items: Optional[List[MenuItemResponse]] = None

    @classmethod
    def from_restaurant(cls, restaurant, menu_items=None) -> "RestaurantResponse":
        return cls(
            id=restaurant.id,
            name=restaurant.name,
            slug=restaurant.slug,
            restaurant_type=restaurant.restaurant_type.value,
            cuisine_type=restaurant.cuisine_type,
            address=restaurant.address,
            city=restaurant.city,
            phone=restaurant.phone,
            email=restaurant.email,
            logo_url=restaurant.logo_url,
            status=restaurant.status.value,
            qr_code=restaurant.qr_code,
            owner_user_id=restaurant.owner_user_id,
            onboarded_at=restaurant.onboarded_at,
            menu_items=[MenuItemResponse.from_item(i) for i in menu_items] if menu_items is not None else None,
        )
