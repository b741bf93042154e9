# stocktrack/constants/transaction_type.py

from enum import Enum


class StockTransactionType(str, Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"
