"""
Calculators Package

Modules:
- lot_events: LotMatch and remainder total modes
- lot_matching: LIFO reconciliation engine
- report: Tabular and JSON rendering of lots

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

__all__ = ['lot_events', 'lot_matching', 'report']
