from .auth import User, SessionToken
from .catalog import Item
from .orders import Transaction, TransactionDetail

__all__ = [
    'User', 'SessionToken',
    'Item',
    'Transaction', 'TransactionDetail',
]
