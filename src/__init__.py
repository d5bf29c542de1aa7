"""
SmartBudget - Source Package

Backend for a personal budgeting app: emailed one-time codes for login,
monthly budgets and recurring bills kept in a Google Sheets workbook.

DESIGN PRINCIPLES:
1. Stateless requests - every call reads and writes through the store
2. Every action answers with the same success/error envelope
3. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SmartBudget Team"
