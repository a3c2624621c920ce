from dabil.repositories.ledger import LedgerRepository, new_reference

__all__ = ["LedgerRepository", "new_reference"]
