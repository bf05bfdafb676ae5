"""Utility functions for parishledger."""

from parishledger.utils.date_parser import parse_date
from parishledger.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]
