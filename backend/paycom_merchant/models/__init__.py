from .transactions import PaycomTransaction, TransactionAudit
from .orders import Order

__all__ = [
    'PaycomTransaction', 'TransactionAudit',
    'Order',
]
