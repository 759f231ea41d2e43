"""
Test Support Module

Record factories shared by the test modules.
"""

from tests.support.builders import (
    D,
    current_holding,
    dataset,
    deposit,
    dividend_ledger_row,
    dividend_summary,
    dividend_tx,
    fee,
    holding_lot,
    option_holding,
    option_sale,
    stock_sale,
    transaction,
)

__all__ = [
    "D",
    "current_holding",
    "dataset",
    "deposit",
    "dividend_ledger_row",
    "dividend_summary",
    "dividend_tx",
    "fee",
    "holding_lot",
    "option_holding",
    "option_sale",
    "stock_sale",
    "transaction",
]
