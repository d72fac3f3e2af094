# -----------------------------------------------------------------------------
# (c) 2026 Andreas Wagner. All Rights Reserved.
#
# This code is part of the Lot Reconciler project.
# Unauthorized usage or distribution is not permitted.
# -----------------------------------------------------------------------------

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from calculators.lot_events import LotMatch
from calculators.lot_matching import reconcile
from core.config import ReconcilerConfig
from core.exceptions import ReconciliationError
from core.hashing import fingerprint_matches
from parsers.fills_parser import FillsCSVParser
from parsers.trade_record import TradeRecord
from utils.logging_config import setup_logger, get_perf_logger

logger = setup_logger(__name__)


@dataclass
class ReconciliationResult:
    """Outcome of reconciling a whole fills file."""

    records: List[TradeRecord]
    matches: Dict[str, List[LotMatch]]
    fingerprint: str

    @property
    def lot_count(self) -> int:
        return sum(len(m) for m in self.matches.values())


def sort_records(records: Iterable[TradeRecord]) -> List[TradeRecord]:
    """Order by product, then by time. Stable for equal timestamps."""
    return sorted(records, key=lambda r: (r.product, r.created_at))


def group_by_product(records: Iterable[TradeRecord]) -> Dict[str, List[TradeRecord]]:
    """
    Group records by product.

    Groups come out in product order and keep the record order of the input
    inside each group, so sort first.
    """
    grouped = defaultdict(list)
    for record in records:
        grouped[record.product].append(record)
    return {product: grouped[product] for product in sorted(grouped)}


def reconcile_all(
    records: Iterable[TradeRecord],
    config: Optional[ReconcilerConfig] = None
) -> Dict[str, List[LotMatch]]:
    """
    Reconcile fills of any number of products, one product at a time.

    Returns:
        Product -> lots in creation order
    """
    config = config or ReconcilerConfig()
    grouped = group_by_product(sort_records(records))

    results = {}
    for product, product_records in grouped.items():
        with get_perf_logger(logger, f"reconcile {product}", threshold_ms=500):
            results[product] = reconcile(product_records, remainder_mode=config.remainder_mode)

    logger.info(f"Reconciled {len(results)} products")
    return results


def reconcile_csv(
    file_content: str,
    config: Optional[ReconcilerConfig] = None
) -> ReconciliationResult:
    """
    Parse a fills CSV and reconcile every product in it.

    Raises:
        ReconciliationError: On a bad header, a malformed row or an
            unreconcilable sequence. Nothing is returned for partial input.
    """
    config = config or ReconcilerConfig()
    try:
        parser = FillsCSVParser()
        records = sort_records(parser.parse_csv(file_content))

        matches = reconcile_all(records, config)
        fingerprint = fingerprint_matches(matches)
        logger.info(f"Reconciliation fingerprint: {fingerprint}")

        return ReconciliationResult(records=records, matches=matches, fingerprint=fingerprint)

    except ReconciliationError as e:
        logger.error(f"Reconciliation aborted: {e}")
        raise
    except Exception as e:
        logger.error(f"Reconciliation pipeline error: {e}", exc_info=True)
        raise
