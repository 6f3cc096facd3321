from .inventory import Product, Person, OutputLog
from .auth import User, SessionToken
from .finance import Resident, Payment, Expense

__all__ = [
    'Product', 'Person', 'OutputLog',
    'User', 'SessionToken',
    'Resident', 'Payment', 'Expense',
]
