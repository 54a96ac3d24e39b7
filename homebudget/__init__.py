"""
Home Budgeting - Source Package

A personal budgeting ledger built around a small predictive
state-reconciliation engine.

DESIGN PRINCIPLES:
1. One ledger, one writer: every mutation is a serialized transform
2. Every snapshot is normalized before anyone sees it
3. Predictions are explainable heuristics, never errors
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Home Budgeting Team"
