"""
Loyalty accrual engine.

Points for a settled order:

    floor(amount * BASE_RATE * RESTAURANT_MULTIPLIERS[type] * TIER_MULTIPLIERS[tier])

Tier is a pure function of lifetime points earned, recomputed every time
points are credited.
"""
from datetime import datetime
from decimal import Decimal, ROUND_FLOOR
from typing import Optional, Union

from dabil.models.loyalty import LoyaltyAccount, LoyaltyTier
from dabil.models.restaurant import RestaurantType

BASE_RATE = Decimal("0.10")  # 10% of spend

RESTAURANT_MULTIPLIERS = {
    RestaurantType.QSR: Decimal("1.00"),
    RestaurantType.FAST_FOOD: Decimal("1.00"),
    RestaurantType.CASUAL: Decimal("1.00"),
    RestaurantType.FINE_DINING: Decimal("1.25"),
    RestaurantType.LUXURY: Decimal("1.50"),
}

TIER_MULTIPLIERS = {
    LoyaltyTier.BRONZE: Decimal("1.00"),
    LoyaltyTier.SILVER: Decimal("1.10"),
    LoyaltyTier.GOLD: Decimal("1.25"),
    LoyaltyTier.PLATINUM: Decimal("1.50"),
}

# Highest first
TIER_THRESHOLDS = (
    (LoyaltyTier.PLATINUM, 10000),
    (LoyaltyTier.GOLD, 5000),
    (LoyaltyTier.SILVER, 2000),
    (LoyaltyTier.BRONZE, 0),
)


def _as_restaurant_type(value: Union[RestaurantType, str, None]) -> Optional[RestaurantType]:
    if isinstance(value, RestaurantType) or value is None:
        return value
    try:
        return RestaurantType(value)
    except ValueError:
        return None


def _as_tier(value: Union[LoyaltyTier, str, None]) -> LoyaltyTier:
    if isinstance(value, LoyaltyTier):
        return value
    try:
        return LoyaltyTier(value)
    except ValueError:
        return LoyaltyTier.BRONZE


def calculate_loyalty_points(
    amount: Union[Decimal, int, str],
    restaurant_type: Union[RestaurantType, str, None],
    tier: Union[LoyaltyTier, str, None],
) -> int:
    """Integer point award for a settled order. Unknown types and tiers earn at 1x."""
    amount = Decimal(str(amount))
    if amount <= 0:
        return 0

    restaurant_multiplier = RESTAURANT_MULTIPLIERS.get(_as_restaurant_type(restaurant_type), Decimal("1.00"))
    tier_multiplier = TIER_MULTIPLIERS[_as_tier(tier)]

    points = amount * BASE_RATE * restaurant_multiplier * tier_multiplier
    return int(points.to_integral_value(rounding=ROUND_FLOOR))


def tier_for_points(lifetime_points: int) -> LoyaltyTier:
    for tier, threshold in TIER_THRESHOLDS:
        if lifetime_points >= threshold:
            return tier
    return LoyaltyTier.BRONZE


def next_tier(lifetime_points: int) -> Optional[dict]:
    """The next tier up and the points still needed, or None at platinum"""
    for tier, threshold in reversed(TIER_THRESHOLDS):
        if lifetime_points < threshold:
            return {"tier": tier.value, "threshold": threshold, "points_needed": threshold - lifetime_points}
    return None


def refresh_tier(account: LoyaltyAccount) -> LoyaltyTier:
    account.current_tier = tier_for_points(account.lifetime_points_earned or 0)
    return account.current_tier


def apply_points(account: LoyaltyAccount, earned: int) -> LoyaltyTier:
    """Credit earned points and recompute the tier. Returns the new tier."""
    if earned < 0:
        raise ValueError("Earned points cannot be negative")
    account.points_balance = (account.points_balance or 0) + earned
    account.lifetime_points_earned = (account.lifetime_points_earned or 0) + earned
    if earned:
        account.last_earned_at = datetime.utcnow()
    return refresh_tier(account)
