"""
Coercion of aggregate query results.

COUNT comes back as int or as a 1-tuple/Row, and SUM over a NUMERIC column
comes back as int, float or Decimal depending on the backend (SQLite
returns floats). Routes and services go through these helpers instead of
calling int()/Decimal() on raw results.
"""
from decimal import Decimal
from typing import Any

CENTS = Decimal("0.01")


def scalar_int(x: Any) -> int:
    """COUNT/aggregate result as int; None counts as 0."""
    if x is None:
        return 0
    if isinstance(x, tuple) or hasattr(x, "_mapping"):
        x = x[0]
    return int(x)


def to_money(value: Any) -> Decimal:
    """SUM/price result as a Decimal rounded to cents; None is 0.00."""
    if value is None:
        return Decimal("0.00")
    if isinstance(value, tuple) or hasattr(value, "_mapping"):
        value = value[0]
    # str() first so floats from SQLite don't carry binary noise into the Decimal
    return Decimal(str(value)).quantize(CENTS)
