"""
Core Kernel Module

Foundational pieces shared by the parsers, the lot matching engine and the
reporting layer.

Components:
- exceptions: Error taxonomy for a reconciliation run
- config: Environment-driven settings
- hashing: SHA256 fingerprint of reconciliation output

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

__all__ = ['exceptions', 'config', 'hashing']
