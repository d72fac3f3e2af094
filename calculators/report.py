"""
Lot Report

Renders reconciled lots as one table per product:
Security, OpenDate, Open Price, Quantity, Fee, Close Date, Close Price, Cost Basis

Open lots are rows without close fields.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import json
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_EVEN, localcontext
from pathlib import Path
from typing import Dict, Iterable, List, Union

import pandas as pd

from calculators.lot_events import LotMatch
from core.config import DEFAULT_DATE_FORMAT, DEFAULT_DECIMALS
from parsers.trade_record import TradeRecord
from utils.logging_config import setup_logger

logger = setup_logger(__name__)


REPORT_COLUMNS = [
    "Security",
    "OpenDate",
    "Open Price",
    "Quantity",
    "Fee",
    "Close Date",
    "Close Price",
    "Cost Basis",
]


def format_number(value: Decimal, decimals: int = DEFAULT_DECIMALS) -> str:
    """
    Format a number with at most `decimals` places and no trailing zeros.

    Example:
        >>> format_number(Decimal("1008.940445205"))
        '1008.940445'
        >>> format_number(Decimal("2.500000"))
        '2.5'
    """
    value = Decimal(value)
    quantum = Decimal(1).scaleb(-decimals)
    with localcontext() as ctx:
        # Enough digits for the integer part plus the kept decimals
        ctx.prec = max(ctx.prec, value.adjusted() + decimals + 2)
        text = format(value.quantize(quantum, rounding=ROUND_HALF_EVEN), 'f')

    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    if text in ('', '-0'):
        text = '0'
    return text


def format_date(value: datetime, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    return value.strftime(date_format)


def match_to_row(
    match: LotMatch,
    date_format: str = DEFAULT_DATE_FORMAT,
    decimals: int = DEFAULT_DECIMALS
) -> Dict[str, str]:
    """Report row for a single lot; close columns are empty while open."""
    buy = match.buy
    row = {
        "Security": buy.product,
        "OpenDate": format_date(buy.created_at, date_format),
        "Open Price": format_number(buy.price, decimals),
        "Quantity": format_number(buy.size, decimals),
        "Fee": format_number(buy.fee, decimals),
        "Close Date": "",
        "Close Price": "",
        "Cost Basis": "",
    }

    if match.sell is not None:
        row["Close Date"] = format_date(match.sell.created_at, date_format)
        row["Close Price"] = format_number(match.sell.price, decimals)
        row["Cost Basis"] = format_number(match.cost_basis, decimals)

    return row


def matches_to_dataframe(
    matches: Iterable[LotMatch],
    date_format: str = DEFAULT_DATE_FORMAT,
    decimals: int = DEFAULT_DECIMALS
) -> pd.DataFrame:
    """Formatted report rows as a DataFrame, one row per lot."""
    rows = [match_to_row(m, date_format, decimals) for m in matches]
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def render_table(
    matches: Iterable[LotMatch],
    date_format: str = DEFAULT_DATE_FORMAT,
    decimals: int = DEFAULT_DECIMALS
) -> str:
    """Tab separated table with a header line."""
    df = matches_to_dataframe(matches, date_format, decimals)
    return df.to_csv(sep='\t', index=False, lineterminator='\n')


def render_report(
    grouped: Dict[str, List[LotMatch]],
    date_format: str = DEFAULT_DATE_FORMAT,
    decimals: int = DEFAULT_DECIMALS
) -> str:
    """One table per product, separated by a blank line."""
    tables = [
        render_table(matches, date_format, decimals)
        for _, matches in grouped.items()
    ]
    return "\n".join(tables)


def render_records(records: Iterable[TradeRecord]) -> str:
    """One line per fill, in the given order."""
    return "\n".join(str(r) for r in records)


def summarize(grouped: Dict[str, List[LotMatch]]) -> pd.DataFrame:
    """
    Per-product totals: open and closed lot counts, open quantity and the
    summed cost basis of closed lots.
    """
    rows = []
    for product, matches in grouped.items():
        closed = [m for m in matches if m.is_closed]
        open_lots = [m for m in matches if m.is_open]
        rows.append({
            "Security": product,
            "Closed Lots": len(closed),
            "Open Lots": len(open_lots),
            "Open Quantity": sum((m.size for m in open_lots), Decimal(0)),
            "Cost Basis": sum((m.cost_basis for m in closed), Decimal(0)),
        })
    return pd.DataFrame(rows, columns=["Security", "Closed Lots", "Open Lots", "Open Quantity", "Cost Basis"])


def export_to_json(grouped: Dict[str, List[LotMatch]], filepath: Union[str, Path]):
    """Export every lot to a JSON file."""
    def decimal_serializer(obj):
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        raise TypeError(f"Type {type(obj)} not serializable")

    lots_data = [
        match.to_dict()
        for matches in grouped.values()
        for match in matches
    ]

    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(lots_data, f, indent=2, default=decimal_serializer)

    logger.info(f"Exported {len(lots_data)} lots to {path}")
