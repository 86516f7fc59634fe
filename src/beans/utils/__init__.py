"""Utility functions for beans."""

from beans.utils.date_parser import parse_date, parse_datetime, to_utc_datetime
from beans.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_datetime", "to_utc_datetime", "parse_amount"]
