"""
Concurrent Account Core

Thread-safe monetary accounts with exact 2-decimal Decimal arithmetic and
deadlock-free transfers using ordered lock acquisition.
"""

__version__ = "1.0.0"
