from dabil.models.user import User
from dabil.models.wallet import Wallet, WalletTransaction
from dabil.models.loyalty import LoyaltyAccount
from dabil.models.restaurant import Restaurant, MenuItem, RestaurantStaff
from dabil.models.session import DiningSession
from dabil.models.order import Order

__all__ = [
    "User",
    "Wallet",
    "WalletTransaction",
    "LoyaltyAccount",
    "Restaurant",
    "MenuItem",
    "RestaurantStaff",
    "DiningSession",
    "Order",
]
