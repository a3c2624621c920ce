from pydantic import BaseModel, Field, AliasChoices
from typing import Optional
from datetime import datetime


class CheckInRequest(BaseModel):
    # The QR scanner sends camelCase
    restaurant_id: str = Field(validation_alias=AliasChoices("restaurant_id", "restaurantId"))
    table_number: Optional[str] = Field(default=None, validation_alias=AliasChoices("table_number", "tableNumber"))
    party_size: int = Field(default=1, ge=1, le=50, validation_alias=AliasChoices("party_size", "partySize"))


class SessionResponse(BaseModel):
    id: str
    user_id: str
    restaurant_id: str
    restaurant_name: Optional[str] = None
    restaurant_type: Optional[str] = None
    session_code: str
    table_number: Optional[str] = None
    party_size: int
    status: str
    total_spent: float
    loyalty_points_earned: int
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None

    @classmethod
    def from_session(cls, session) -> "SessionResponse":
        restaurant = session.restaurant
        return cls(
            id=session.id,
            user_id=session.user_id,
            restaurant_id=session.restaurant_id,
            restaurant_name=restaurant.name if restaurant else None,
            restaurant_type=restaurant.restaurant_type.value if restaurant else None,
            session_code=session.session_code,
            table_number=session.table_number,
            party_size=session.party_size,
            status=session.status.value,
            total_spent=float(session.total_spent or 0),
            loyalty_points_earned=session.loyalty_points_earned or 0,
            checked_in_at=session.checked_in_at,
            checked_out_at=session.checked_out_at,
        )
