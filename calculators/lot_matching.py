"""
Lot Matching Engine - LIFO Reconciliation of Fills

Turns the time-ordered fills of ONE product into matched (buy, sell) lots:
1. Every buy opens a lot
2. Every sell closes the most recently opened lots that are still open
3. Partial fills split a record into a matched part and a remainder

Grouping by product happens before this engine runs (services.pipeline).

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable, List, Optional

from core.exceptions import InvalidRecord, InvalidSequence
from calculators.lot_events import LotMatch, LotMatchingMethod, RemainderTotalMode
from parsers.trade_record import TradeRecord
from utils.logging_config import setup_logger

logger = setup_logger(__name__)


class LotBook:
    """
    Working state of one reconciliation run.

    Lots are kept in slots, one slot per consumed buy, in the order the buys
    arrived. A slot holds the fragments of its buy: closed fragments first,
    then at most one open fragment at the end. Flattening the slots gives the
    output order.

    open_slots is a stack of slot indices whose last fragment is open. Slots
    are pushed in increasing order and only the top is ever split or closed,
    so the top is always the most recently opened open lot.
    """

    def __init__(self):
        self.slots: List[List[LotMatch]] = []
        self.open_slots: List[int] = []

    def open_lot(self, buy: TradeRecord) -> LotMatch:
        lot = LotMatch(buy=buy)
        self.slots.append([lot])
        self.open_slots.append(len(self.slots) - 1)
        return lot

    def top_open(self) -> Optional[LotMatch]:
        """Most recently opened lot that is still open, or None."""
        if not self.open_slots:
            return None
        return self.slots[self.open_slots[-1]][-1]

    def close_top(self, closed: LotMatch):
        """Replace the top open lot with its closed version."""
        slot = self.open_slots.pop()
        self.slots[slot][-1] = closed

    def split_top(self, closed: LotMatch, remainder: LotMatch):
        """Replace the top open lot with a closed part followed by an open remainder."""
        slot = self.open_slots[-1]
        self.slots[slot][-1] = closed
        self.slots[slot].append(remainder)

    def matches(self) -> List[LotMatch]:
        return [lot for slot in self.slots for lot in slot]

    def open_count(self) -> int:
        return len(self.open_slots)


class LotMatchingStrategy(ABC):
    """Abstract base class for lot matching algorithms."""

    @abstractmethod
    def handle_buy(self, buy: TradeRecord, book: LotBook) -> LotMatch:
        """
        Open a lot for a buy record.

        Returns:
            The new open LotMatch
        """
        pass

    @abstractmethod
    def match_sell(self, sell: TradeRecord, book: LotBook) -> List[LotMatch]:
        """
        Close open lots against a sell record.

        Returns:
            The closed LotMatches this sell produced, in matching order

        Raises:
            InvalidSequence: If the open lots cannot absorb the whole sell
        """
        pass

    @abstractmethod
    def get_method_name(self) -> LotMatchingMethod:
        """Return the matching method name."""
        pass


class LIFOStrategy(LotMatchingStrategy):
    """Last-In, First-Out lot matching."""

    def __init__(self, remainder_mode: RemainderTotalMode = RemainderTotalMode.PRODUCT):
        self.remainder_mode = remainder_mode

    def handle_buy(self, buy: TradeRecord, book: LotBook) -> LotMatch:
        return book.open_lot(buy)

    def match_sell(self, sell: TradeRecord, book: LotBook) -> List[LotMatch]:
        remaining = sell
        closed = []

        while True:
            lot = book.top_open()
            if lot is None:
                logger.error(
                    f"Undersupplied sell: {sell.product} trade {sell.trade_id} on "
                    f"{sell.created_at.date()} - {remaining.size} of {sell.size} left without an open lot"
                )
                raise InvalidSequence(
                    f"Sell {sell.trade_id} of {sell.product} exceeds open lots by {remaining.size}",
                    product=sell.product,
                    remaining=remaining.size
                )

            buy = lot.buy

            if buy.size == remaining.size:
                match = lot.close(remaining)
                book.close_top(match)
                closed.append(match)
                return closed

            if buy.size > remaining.size:
                match, rest = self._split_buy(buy, remaining)
                book.split_top(match, rest)
                closed.append(match)
                return closed

            # Buy lot smaller: close it with a slice of the sell, keep going
            sold, remaining = self._split_sell(remaining, buy.size)
            match = lot.close(sold)
            book.close_top(match)
            closed.append(match)

    def _split_buy(self, buy: TradeRecord, sell: TradeRecord):
        """Split a buy into a part closed by sell and an open remainder."""
        matched_size = sell.size
        rest_size = buy.size - matched_size

        # Fee stays entirely with the matched part
        matched = buy.adjusted(
            size=matched_size,
            total=matched_size * buy.price + buy.fee
        )
        rest = buy.adjusted(
            size=rest_size,
            fee=Decimal(0),
            total=self.remainder_mode.remainder_total(rest_size, buy.price)
        )

        logger.debug(
            f"Split buy {buy.trade_id}: {matched_size} closed by sell {sell.trade_id}, "
            f"{rest_size} left open"
        )
        return LotMatch(buy=matched, sell=sell), LotMatch(buy=rest)

    def _split_sell(self, sell: TradeRecord, lot_size: Decimal):
        """Split a sell into a slice of lot_size and the unmatched rest."""
        rest_size = sell.size - lot_size

        # Fee stays entirely with the first slice
        sold = sell.adjusted(
            size=lot_size,
            total=lot_size * sell.price + sell.fee
        )
        rest = sell.adjusted(
            size=rest_size,
            fee=Decimal(0),
            total=self.remainder_mode.remainder_total(rest_size, sell.price)
        )

        logger.debug(f"Split sell {sell.trade_id}: {lot_size} matched, {rest_size} still to match")
        return sold, rest

    def get_method_name(self) -> LotMatchingMethod:
        return LotMatchingMethod.LIFO


class ReconciliationEngine:
    """
    Reconciles the fills of a single product into LotMatches.

    The caller's records are never modified; every split produces new
    records. A failed run raises and returns nothing.
    """

    def __init__(
        self,
        records: Iterable[TradeRecord],
        strategy: Optional[LotMatchingStrategy] = None,
        remainder_mode: RemainderTotalMode = RemainderTotalMode.PRODUCT
    ):
        self.records = list(records)
        self.strategy = strategy or LIFOStrategy(remainder_mode)
        self.book = LotBook()

    def validate_records(self):
        """
        Check the input before any lot is touched.

        Raises:
            InvalidRecord: A record has a non-positive size
            InvalidSequence: Records span several products or go back in time
        """
        for record in self.records:
            if record.size <= 0:
                raise InvalidRecord(
                    f"Trade size must be positive, got {record.size}",
                    trade_id=record.trade_id
                )

        previous = None
        for record in self.records:
            if previous is not None:
                if record.product != previous.product:
                    raise InvalidSequence(
                        f"Records for several products in one run: "
                        f"{previous.product} and {record.product}",
                        product=previous.product
                    )
                if record.created_at < previous.created_at:
                    raise InvalidSequence(
                        f"Trade {record.trade_id} at {record.created_at.isoformat()} is older than "
                        f"trade {previous.trade_id} at {previous.created_at.isoformat()}",
                        product=record.product
                    )
            previous = record

    def process_all_records(self) -> List[LotMatch]:
        """Process all records and return every lot, open and closed."""
        self.validate_records()
        self.book = LotBook()

        product = self.records[0].product if self.records else "-"
        logger.info(
            f"Reconciling {len(self.records)} records of {product} "
            f"with {self.strategy.get_method_name().value}"
        )

        for record in self.records:
            self.process_record(record)

        matches = self.book.matches()
        logger.info(
            f"{product}: {len(matches)} lots, "
            f"{len(matches) - self.book.open_count()} closed, {self.book.open_count()} open"
        )
        return matches

    def process_record(self, record: TradeRecord):
        """Process a single record."""
        if record.is_buy:
            self.strategy.handle_buy(record, self.book)
        else:
            self.strategy.match_sell(record, self.book)

    def get_matches(self) -> List[LotMatch]:
        return self.book.matches()

    def get_open_lots(self) -> List[LotMatch]:
        return [lot for lot in self.book.matches() if lot.is_open]

    def get_closed_matches(self) -> List[LotMatch]:
        return [lot for lot in self.book.matches() if lot.is_closed]


def reconcile(
    records: Iterable[TradeRecord],
    remainder_mode: RemainderTotalMode = RemainderTotalMode.PRODUCT
) -> List[LotMatch]:
    """
    Match the fills of one product with LIFO.

    Args:
        records: Time-ordered fills, all of the same product
        remainder_mode: How totals of split remainders are computed

    Returns:
        Every lot in creation order; open lots have no sell

    Raises:
        InvalidRecord: A record has a non-positive size
        InvalidSequence: A sell cannot be fully absorbed by open lots
    """
    engine = ReconciliationEngine(records, remainder_mode=remainder_mode)
    return engine.process_all_records()
