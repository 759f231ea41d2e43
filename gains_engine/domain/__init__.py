# gains_engine/domain/__init__.py
# Kept empty; import from the submodules directly.

# Example (optional):
# from .records import Transaction, StockSaleRecord, OptionSaleRecord, DividendTransaction, Fee
# from .results import IsinMetrics, EnrichedHolding, SummaryMetrics, AnexoJReport, ChartBucket
# from .enums import TransactionType, TransactionSubtype, SaleKind
