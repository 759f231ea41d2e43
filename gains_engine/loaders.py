# gains_engine/loaders.py
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from gains_engine.domain.records import (
    CurrentHolding, DividendCountryFigures, DividendTaxSummary, DividendTransaction, Fee, HistoricalHoldingLot,
    OptionHolding, OptionSaleRecord, PortfolioDataSet, StockSaleRecord, Transaction,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar('RecordT', bound=BaseModel)


def _first_present(payload: Dict[str, Any], keys: Sequence[str]) -> Any:
    # The backend names some collections differently per endpoint
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _parse_rows(rows: Optional[List[Dict[str, Any]]], model: Type[RecordT], source_name: str,
                extra_fields: Optional[Dict[str, Any]] = None) -> List[RecordT]:
    records: List[RecordT] = []
    if not rows:
        return records
    if not isinstance(rows, list):
        logger.warning(f"Expected a list for '{source_name}', got {type(rows).__name__}. Ignoring it.")
        return records

    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning(f"Skipping {source_name} row {i}: not an object ({row!r}).")
            continue
        data = {**extra_fields, **row} if extra_fields else row
        try:
            records.append(model.model_validate(data))
        except ValidationError as e:
            logger.warning(f"Validation error parsing {source_name} row {i}: {row}. Error: {e.errors()}")
    logger.debug(f"Loaded {len(records)} of {len(rows)} {source_name} rows.")
    return records


def _parse_dividend_summary(raw: Optional[Dict[str, Any]]) -> DividendTaxSummary:
    summary: DividendTaxSummary = {}
    if not raw:
        return summary
    if not isinstance(raw, dict):
        logger.warning(f"Expected an object for the dividend summary, got {type(raw).__name__}. Ignoring it.")
        return summary

    for year, countries in raw.items():
        if not isinstance(countries, dict):
            logger.warning(f"Skipping dividend summary year {year}: not an object.")
            continue
        year_figures: Dict[str, DividendCountryFigures] = {}
        for country, figures in countries.items():
            try:
                year_figures[str(country)] = DividendCountryFigures.model_validate(figures)
            except ValidationError as e:
                logger.warning(f"Validation error in dividend summary {year}/{country}: {e.errors()}")
        summary[str(year)] = year_figures
    return summary


def _parse_holdings_by_year(raw: Optional[Dict[str, Any]]) -> Dict[str, List[HistoricalHoldingLot]]:
    if not raw or not isinstance(raw, dict):
        return {}
    return {
        str(year): _parse_rows(lots, HistoricalHoldingLot, f"holdingsByYear[{year}]", extra_fields={'year': str(year)})
        for year, lots in raw.items()
    }


def build_dataset(payload: Dict[str, Any]) -> PortfolioDataSet:
    """Validates a backend payload into a PortfolioDataSet. Missing collections become empty."""
    dataset = PortfolioDataSet(
        transactions=_parse_rows(payload.get('transactions'), Transaction, 'transactions'),
        stock_sales=_parse_rows(_first_present(payload, ('stockSales', 'StockSaleDetails')), StockSaleRecord, 'stockSales'),
        option_sales=_parse_rows(_first_present(payload, ('optionSales', 'OptionSaleDetails')), OptionSaleRecord, 'optionSales'),
        dividend_summary=_parse_dividend_summary(_first_present(payload, ('dividendSummary', 'DividendTaxResult'))),
        dividend_transactions=_parse_rows(payload.get('dividendTransactions'), DividendTransaction, 'dividendTransactions'),
        fees=_parse_rows(payload.get('fees'), Fee, 'fees'),
        current_holdings=_parse_rows(payload.get('currentHoldings'), CurrentHolding, 'currentHoldings'),
        holdings_by_year=_parse_holdings_by_year(payload.get('holdingsByYear')),
        current_holding_lots=_parse_rows(payload.get('currentHoldingLots'), HistoricalHoldingLot, 'currentHoldingLots'),
        option_holdings=_parse_rows(payload.get('optionHoldings'), OptionHolding, 'optionHoldings'),
    )
    logger.info(
        f"Dataset loaded: {len(dataset.transactions)} transactions, {len(dataset.stock_sales)} stock sales, "
        f"{len(dataset.option_sales)} option sales, {len(dataset.fees)} fees, {len(dataset.current_holdings)} current holdings."
    )
    return dataset


def load_dataset_from_json(file_path: str, encoding: str = 'utf-8') -> PortfolioDataSet:
    """Reads a backend export from disk. A missing file raises FileNotFoundError; malformed JSON raises ValueError."""
    logger.info(f"Reading portfolio export: {file_path}")
    with open(file_path, 'r', encoding=encoding) as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Portfolio export {file_path} is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ValueError(f"Portfolio export {file_path} must contain a JSON object at the top level.")
    return build_dataset(payload)
