from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from decimal import Decimal


class FundWalletRequest(BaseModel):
    """POST /wallet/fund body. Bounds are checked by the wallet service."""
    amount: Decimal = Field(..., gt=0, description="Amount to add in NGN")
    email: Optional[EmailStr] = None  # Defaults to the account email


class FundWalletResponse(BaseModel):
    authorization_url: Optional[str] = None
    access_code: Optional[str] = None
    reference: str
    amount: float


class VerifyFundingResponse(BaseModel):
    reference: str
    amount: float
    new_balance: float
    already_processed: bool = False
    loyalty_points_earned: int = 0  # Funding never earns points


class RedeemPointsRequest(BaseModel):
    points: int = Field(..., description="Points to convert; must be a positive multiple of 4")


class RedeemPointsResponse(BaseModel):
    points_redeemed: int
    wallet_credited: float
    new_wallet_balance: float
    points_balance: int
