from decimal import ROUND_HALF_UP, Decimal


def to_fixed(value: float, precision: int = 2) -> float:
    """Round a money amount to `precision` decimals, halves away from zero.

    The value goes through its shortest repr first, so 2.005 becomes 2.01
    rather than 2.00 from the binary float underneath.
    """
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
