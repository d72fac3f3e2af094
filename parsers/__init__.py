"""
Parsers Package

Record source for the reconciler: turns an exchange fills export into
validated, immutable TradeRecord objects.

Modules:
- trade_record: TradeSide and TradeRecord models
- fills_parser: Fills CSV reader with fixed header validation

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

__all__ = ['trade_record', 'fills_parser']
