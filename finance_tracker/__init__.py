"""
Finance Tracker - Source Package

A personal finance tracker: log income and expense transactions,
categorize them, and view balances and charts.

DESIGN PRINCIPLES:
1. One explicitly constructed store owns the state
2. Every mutation goes through a named action
3. Aggregates are derived, never stored
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
