"""Fills CSV parser with fixed header validation."""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from io import StringIO
from pathlib import Path
from typing import Any, List, Optional, Union

import pandas as pd
from pydantic import ValidationError

from core.exceptions import CSVHeaderError, InvalidRecord
from parsers.trade_record import TradeRecord, TradeSide
from utils.logging_config import setup_logger, log_dataframe_info

logger = setup_logger(__name__)


class FillsCSVParser:
    """
    Parser for exchange fills exports.

    Example row:
        default, 7204216, ADA-USD, BUY, 2021-05-07T16:17:11.940Z, 589.19000000, ADA,
        1.7039, 5.019604205, -1008.940445205, USD

    Any problem aborts the whole file: a run over partially parsed fills would
    report wrong lots.
    """

    EXPECTED_HEADER = [
        "portfolio",
        "trade id",
        "product",
        "side",
        "created at",
        "size",
        "size unit",
        "price",
        "fee",
        "total",
        "price/fee/total unit",
    ]

    DATE_FORMATS = [
        '%Y-%m-%dT%H:%M:%S.%f%z',   # 2021-05-07T16:17:11.940Z
        '%Y-%m-%dT%H:%M:%S%z',      # 2021-05-07T16:17:11Z
        '%Y-%m-%dT%H:%M:%S.%f',     # no zone, taken as UTC
        '%Y-%m-%dT%H:%M:%S',
    ]

    def __init__(self, delimiter: str = ','):
        self.delimiter = delimiter

    def validate_header(self, columns: List[str]) -> bool:
        """True if columns equal the expected header exactly (after trimming)."""
        return [str(c).strip() for c in columns] == self.EXPECTED_HEADER

    def parse_decimal(self, value: Any, field: str, row: int) -> Decimal:
        """Convert a cell to Decimal."""
        if pd.isna(value) or str(value).strip() == '':
            raise InvalidRecord(f"Missing value for '{field}'", row=row)

        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidRecord(f"Could not parse '{field}' value '{value}' as a number", row=row)

        if not result.is_finite():
            raise InvalidRecord(f"Non-finite '{field}' value '{value}'", row=row)
        return result

    def parse_date(self, value: Any, row: int) -> datetime:
        """
        Parse an ISO-8601 timestamp.

        Zoned timestamps are converted to UTC; the result is always naive UTC.
        """
        if pd.isna(value) or str(value).strip() == '':
            raise InvalidRecord("Missing value for 'created at'", row=row)

        val_str = str(value).strip()

        for fmt in self.DATE_FORMATS:
            try:
                parsed = datetime.strptime(val_str, fmt)
            except ValueError:
                continue
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
            return parsed

        raise InvalidRecord(f"Could not parse 'created at' value '{value}'", row=row)

    def parse_text(self, value: Any, field: str, row: int, required: bool = True) -> Optional[str]:
        if pd.isna(value) or str(value).strip() == '':
            if required:
                raise InvalidRecord(f"Missing value for '{field}'", row=row)
            return None
        return str(value).strip()

    def parse_row(self, values: List[Any], row: int) -> TradeRecord:
        """Build a TradeRecord from one data row (values in header order)."""
        cells = dict(zip(self.EXPECTED_HEADER, values))

        trade_id = self.parse_text(cells["trade id"], "trade id", row)
        side_text = self.parse_text(cells["side"], "side", row)

        try:
            return TradeRecord(
                trade_id=trade_id,
                product=self.parse_text(cells["product"], "product", row),
                side=TradeSide.normalize(side_text),
                created_at=self.parse_date(cells["created at"], row),
                size=self.parse_decimal(cells["size"], "size", row),
                price=self.parse_decimal(cells["price"], "price", row),
                fee=self.parse_decimal(cells["fee"], "fee", row),
                total=self.parse_decimal(cells["total"], "total", row),
                portfolio=self.parse_text(cells["portfolio"], "portfolio", row, required=False),
                size_unit=self.parse_text(cells["size unit"], "size unit", row, required=False),
                price_unit=self.parse_text(
                    cells["price/fee/total unit"], "price/fee/total unit", row, required=False
                ),
            )
        except ValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise InvalidRecord(f"Invalid trade: {messages}", trade_id=trade_id, row=row)

    def parse_csv(self, file_content: str) -> List[TradeRecord]:
        """
        Parse fills CSV content into TradeRecords, in file order.

        Args:
            file_content: Raw CSV content as string

        Returns:
            List of validated TradeRecords

        Raises:
            CSVHeaderError: If the file is empty or its header is unexpected
            InvalidRecord: If any data row is malformed
        """
        read_options = dict(
            delimiter=self.delimiter,
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )

        # Header first, on its own, so a short or long data row cannot mask it
        try:
            header_df = pd.read_csv(StringIO(file_content), nrows=1, **read_options)
        except pd.errors.EmptyDataError:
            raise CSVHeaderError("Fills file is empty, expected a header row")

        header = [str(c).strip() for c in header_df.iloc[0]] if len(header_df) else []
        if not self.validate_header(header):
            logger.error(f"Unexpected CSV header: {header}")
            raise CSVHeaderError(f"Unexpected CSV header: {header}, expected {self.EXPECTED_HEADER}")

        try:
            df = pd.read_csv(StringIO(file_content), **read_options)
        except pd.errors.ParserError as e:
            raise InvalidRecord(f"Malformed CSV: {e}")

        data = df.iloc[1:]
        log_dataframe_info(logger, data, "Fills")

        records = []
        for row_number, (_, row) in enumerate(data.iterrows(), start=1):
            records.append(self.parse_row(list(row), row_number))

        logger.info(f"Parsed {len(records)} fills")
        return records

    def parse_file(self, path: Union[str, Path]) -> List[TradeRecord]:
        """Read and parse a fills CSV file."""
        file_path = Path(path)
        logger.info(f"Loading fills from {file_path}")
        content = file_path.read_text(encoding='utf-8-sig')
        return self.parse_csv(content)
