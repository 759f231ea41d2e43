# gains_engine/domain/enums.py
from enum import Enum


class TransactionType(str, Enum):
    STOCK = "STOCK"
    OPTION = "OPTION"
    DIVIDEND = "DIVIDEND"
    FEE = "FEE"
    CASH = "CASH"


class TransactionSubtype(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TAX = "TAX" # Dividend withholding, never part of dividend income


class SaleKind(str, Enum):
    """Which upstream record a normalized sale leg came from."""
    STOCK = "STOCK"
    OPTION = "OPTION"
