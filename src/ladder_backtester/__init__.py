"""
Ladder Backtester — Dynamic-reference ladder strategy simulation over daily bars.

Provides:
- Bar normalization from exported CSV text (grouped digits, newest-first order)
- Position ledger with same-day sell locking
- Reference price state machine with recovery and falling-market resets
- Per-bar sell/buy cascade engine with threshold escalation
- Realized/unrealized results aggregation and report export
- Command line runner
"""

__version__ = "1.0.0"
