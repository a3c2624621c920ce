"""
Read-only aggregates for the admin dashboard, the manager dashboard, the POS
guest list and the customer loyalty pages.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List
from sqlalchemy import func, distinct, select
from sqlalchemy.orm import Session
from dabil.config import settings
from dabil.models.loyalty import LoyaltyAccount, LoyaltyTier
from dabil.models.order import Order, OrderStatus
from dabil.models.restaurant import Restaurant, RestaurantStatus
from dabil.models.session import DiningSession, SessionStatus
from dabil.models.user import User, UserRole, UserStatus
from dabil.models.wallet import Wallet
from dabil.exceptions import NotFound
from dabil.services import loyalty_service
from dabil.services.session_service import OPEN_ORDER_STATUSES


def _money(value) -> float:
    return float(Decimal(str(value or 0)))


def _start_of_day(now: datetime = None) -> datetime:
    now = now or datetime.utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def admin_stats(db: Session) -> dict:
    thirty_days_ago = datetime.utcnow() - timedelta(days=30)

    total_users = db.query(User).filter(User.role == UserRole.CUSTOMER).count()
    active_users = db.query(User).filter(
        User.role == UserRole.CUSTOMER,
        User.status == UserStatus.ACTIVE,
    ).count()
    recent_diners = db.query(func.count(distinct(DiningSession.user_id))).filter(
        DiningSession.checked_in_at >= thirty_days_ago
    ).scalar() or 0

    total_restaurants = db.query(Restaurant).count()
    active_restaurants = db.query(Restaurant).filter(Restaurant.status == RestaurantStatus.ACTIVE).count()

    revenue = db.query(func.coalesce(func.sum(Order.total_amount), 0)).filter(
        Order.status == OrderStatus.SERVED
    ).scalar()
    served_orders = db.query(Order).filter(Order.status == OrderStatus.SERVED).count()
    wallet_float = db.query(func.coalesce(func.sum(Wallet.balance), 0)).scalar()
    points_outstanding = db.query(func.coalesce(func.sum(LoyaltyAccount.points_balance), 0)).scalar()

    return {
        "total_users": total_users,
        "active_users": active_users,
        "users_active_last_30_days": recent_diners,
        "total_restaurants": total_restaurants,
        "active_restaurants": active_restaurants,
        "total_revenue": _money(revenue),
        "served_orders": served_orders,
        "wallet_balance_total": _money(wallet_float),
        "points_outstanding": int(points_outstanding or 0),
    }


def manager_stats(db: Session, restaurant: Restaurant) -> dict:
    today = _start_of_day()
    served_today = db.query(Order).join(DiningSession).filter(
        DiningSession.restaurant_id == restaurant.id,
        Order.status == OrderStatus.SERVED,
        Order.served_at >= today,
    )
    revenue_today = served_today.with_entities(
        func.coalesce(func.sum(Order.total_amount), 0)
    ).scalar()

    active_sessions = db.query(DiningSession).filter(
        DiningSession.restaurant_id == restaurant.id,
        DiningSession.status == SessionStatus.ACTIVE,
    ).count()
    pending_orders = db.query(Order).join(DiningSession).filter(
        DiningSession.restaurant_id == restaurant.id,
        Order.status.in_(OPEN_ORDER_STATUSES),
    ).count()

    return {
        "restaurant_id": restaurant.id,
        "restaurant_name": restaurant.name,
        "today_revenue": _money(revenue_today),
        "today_orders": served_today.count(),
        "active_sessions": active_sessions,
        "pending_orders": pending_orders,
    }


def loyalty_overview(db: Session, restaurant: Restaurant, top: int = 5) -> dict:
    """Points awarded at one restaurant, from settled session aggregates"""
    sessions = db.query(DiningSession).filter(DiningSession.restaurant_id == restaurant.id)

    points_awarded = sessions.with_entities(
        func.coalesce(func.sum(DiningSession.loyalty_points_earned), 0)
    ).scalar()
    customer_ids = select(DiningSession.user_id).where(DiningSession.restaurant_id == restaurant.id)

    tier_rows = (
        db.query(LoyaltyAccount.current_tier, func.count(LoyaltyAccount.id))
        .filter(LoyaltyAccount.user_id.in_(customer_ids))
        .group_by(LoyaltyAccount.current_tier)
        .all()
    )
    distribution = {tier.value: 0 for tier in LoyaltyTier}
    for tier, count in tier_rows:
        distribution[tier.value] = count

    top_rows = (
        db.query(
            User.id,
            User.name,
            func.sum(DiningSession.total_spent).label("spent"),
            func.sum(DiningSession.loyalty_points_earned).label("points"),
            func.count(DiningSession.id).label("visits"),
        )
        .join(DiningSession, DiningSession.user_id == User.id)
        .filter(DiningSession.restaurant_id == restaurant.id)
        .group_by(User.id, User.name)
        .order_by(func.sum(DiningSession.total_spent).desc())
        .limit(top)
        .all()
    )

    return {
        "total_points_awarded": int(points_awarded or 0),
        "active_customers": sum(distribution.values()),
        "tier_distribution": distribution,
        "top_customers": [
            {
                "user_id": row.id,
                "name": row.name,
                "total_spent": _money(row.spent),
                "points_earned": int(row.points or 0),
                "visits": row.visits,
            }
            for row in top_rows
        ],
    }


def pos_guests(db: Session, restaurant_id: str) -> List[Dict]:
    """Checked-in guests with their order counts, oldest check-in first"""
    sessions = (
        db.query(DiningSession, User.name)
        .join(User, User.id == DiningSession.user_id)
        .filter(
            DiningSession.restaurant_id == restaurant_id,
            DiningSession.status == SessionStatus.ACTIVE,
        )
        .order_by(DiningSession.checked_in_at)
        .all()
    )
    if not sessions:
        return []

    counts = dict(
        db.query(Order.session_id, func.count(Order.id))
        .filter(Order.session_id.in_([s.id for s, _ in sessions]))
        .group_by(Order.session_id)
        .all()
    )
    open_counts = dict(
        db.query(Order.session_id, func.count(Order.id))
        .filter(
            Order.session_id.in_([s.id for s, _ in sessions]),
            Order.status.in_(OPEN_ORDER_STATUSES),
        )
        .group_by(Order.session_id)
        .all()
    )

    return [
        {
            "session_id": session.id,
            "session_code": session.session_code,
            "user_id": session.user_id,
            "customer_name": name,
            "table_number": session.table_number,
            "party_size": session.party_size,
            "checked_in_at": session.checked_in_at.isoformat() if session.checked_in_at else None,
            "total_spent": _money(session.total_spent),
            "order_count": counts.get(session.id, 0),
            "open_orders": open_counts.get(session.id, 0),
        }
        for session, name in sessions
    ]


# Customer loyalty

def loyalty_summary(db: Session, user: User) -> dict:
    account = db.query(LoyaltyAccount).filter(LoyaltyAccount.user_id == user.id).first()
    if account is None:
        raise NotFound("Loyalty account not found")

    lifetime = account.lifetime_points_earned or 0
    return {
        "points_balance": account.points_balance,
        "lifetime_points_earned": lifetime,
        "lifetime_points_redeemed": account.lifetime_points_redeemed,
        "tier": account.current_tier.value,
        "tier_multiplier": float(loyalty_service.TIER_MULTIPLIERS[account.current_tier]),
        "next_tier": loyalty_service.next_tier(lifetime),
        "redeemable_value": account.points_balance // settings.POINTS_PER_CURRENCY_UNIT,
        "last_earned_at": account.last_earned_at.isoformat() if account.last_earned_at else None,
        "last_redeemed_at": account.last_redeemed_at.isoformat() if account.last_redeemed_at else None,
    }


def points_history(db: Session, user: User, limit: int = 50) -> List[Dict]:
    rows = (
        db.query(DiningSession, Restaurant.name, Restaurant.restaurant_type)
        .join(Restaurant, Restaurant.id == DiningSession.restaurant_id)
        .filter(
            DiningSession.user_id == user.id,
            DiningSession.loyalty_points_earned > 0,
        )
        .order_by(DiningSession.checked_in_at.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "session_id": session.id,
            "restaurant_name": name,
            "restaurant_type": restaurant_type.value,
            "points_earned": session.loyalty_points_earned,
            "amount_spent": _money(session.total_spent),
            "date": session.checked_in_at.isoformat() if session.checked_in_at else None,
        }
        for session, name, restaurant_type in rows
    ]
