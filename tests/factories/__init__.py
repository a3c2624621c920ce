from .accounts import UserFactory, WalletFactory, LoyaltyAccountFactory
from .restaurants import RestaurantFactory, MenuItemFactory, StaffFactory
from .orders import DiningSessionFactory, OrderFactory, WalletTransactionFactory

ALL_FACTORIES = (
    UserFactory,
    WalletFactory,
    LoyaltyAccountFactory,
    RestaurantFactory,
    MenuItemFactory,
    StaffFactory,
    DiningSessionFactory,
    OrderFactory,
    WalletTransactionFactory,
)

__all__ = [
    "ALL_FACTORIES",
    "UserFactory",
    "WalletFactory",
    "LoyaltyAccountFactory",
    "RestaurantFactory",
    "MenuItemFactory",
    "StaffFactory",
    "DiningSessionFactory",
    "OrderFactory",
    "WalletTransactionFactory",
]
