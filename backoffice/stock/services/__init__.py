"""
Stock ledger services
"""

from .ledger_service import StockLedger
from .movement_query import StockMovementQuery
from .retry import retry_on_conflict

__all__ = ['StockLedger', 'StockMovementQuery', 'retry_on_conflict']
