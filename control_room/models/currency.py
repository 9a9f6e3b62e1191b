# =============================================================================
# control_room/models/currency.py
# Currency Normalization
# =============================================================================
"""
Fixed-rate currency conversion to the reference currency (EGP).

Every cross-record sum (deal values, debt totals, monthly income) goes
through ``CurrencyTable.to_reference`` so raw amounts in different
currencies are never added together.
"""

from __future__ import annotations

from typing import Dict, Optional

from control_room.errors import CurrencyConversionError

REFERENCE_CURRENCY = "EGP"
USD_TO_EGP_RATE = 50.0
DEFAULT_RATES: Dict[str, float] = {"EGP": 1.0, "USD": USD_TO_EGP_RATE}
SUPPORTED_CURRENCIES = tuple(DEFAULT_RATES)

# Payments per year for each pay frequency
PAY_PERIODS_PER_YEAR: Dict[str, int] = {
    "weekly": 52,
    "biweekly": 26,
    "monthly": 12,
    "yearly": 1,
}


class CurrencyTable:
    """Immutable-by-convention rate table: amount in X * rate = amount in EGP."""

    def __init__(self, rates: Optional[Dict[str, float]] = None):
        self.rates = dict(rates or DEFAULT_RATES)
        self.rates.setdefault(REFERENCE_CURRENCY, 1.0)

    def to_reference(self, amount: float, currency: Optional[str]) -> float:
        """
        Convert an amount to EGP.

        Raises:
            CurrencyConversionError: currency missing from the table
        """
        code = (currency or REFERENCE_CURRENCY).upper()
        rate = self.rates.get(code)
        if rate is None:
            raise CurrencyConversionError(
                f"No conversion rate for currency '{currency}'",
                currency=currency,
            )
        return float(amount or 0) * rate

    def __contains__(self, currency: str) -> bool:
        return (currency or "").upper() in self.rates


DEFAULT_TABLE = CurrencyTable()


def to_reference(amount: float, currency: Optional[str], table: Optional[CurrencyTable] = None) -> float:
    """Convert using the given table (or the default one)."""
    return (table or DEFAULT_TABLE).to_reference(amount, currency)


def to_monthly_amount(amount: float, frequency: str) -> float:
    """Normalize a salary paid at ``frequency`` to a monthly figure."""
    periods = PAY_PERIODS_PER_YEAR.get(frequency)
    if periods is None:
        raise CurrencyConversionError(
            f"Unknown pay frequency '{frequency}'",
            details={"frequency": frequency},
        )
    return float(amount or 0) * periods / 12
