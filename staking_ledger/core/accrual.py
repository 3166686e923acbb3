"""Time-proportional reward accrual."""
from .errors import ArithmeticOverflowError
from .stake import U64_MAX

# Points are fixed-point with six decimal places
POINTS_SCALE = 10**6

# Scaled points earned per staked unit per second
RATE = 1


def checked_add(a: int, b: int) -> int:
    """Add two u64 values, raising on overflow."""
    result = a + b
    if result > U64_MAX:
        raise ArithmeticOverflowError(f"{a} + {b} overflows u64")
    return result


def checked_sub(a: int, b: int) -> int:
    """Subtract two u64 values, raising on underflow."""
    if b > a:
        raise ArithmeticOverflowError(f"{a} - {b} underflows u64")
    return a - b


def checked_mul(a: int, b: int) -> int:
    """Multiply two u64 values, raising on overflow."""
    result = a * b
    if result > U64_MAX:
        raise ArithmeticOverflowError(f"{a} * {b} overflows u64")
    return result


def elapsed(now: int, last_updated_time: int) -> int:
    """Seconds since the last checkpoint; a clock behind the checkpoint counts as zero."""
    return max(0, now - last_updated_time)


def accrue(staked_amount: int, elapsed_seconds: int, last_points: int, rate: int = RATE) -> int:
    """Compute points after ``elapsed_seconds`` at ``staked_amount``.

    Args:
        staked_amount: Amount staked during the interval
        elapsed_seconds: Length of the interval, negative values are clamped to 0
        last_points: Points at the start of the interval
        rate: Scaled points per staked unit-second

    Returns:
        New point total

    Raises:
        ArithmeticOverflowError: If any intermediate value leaves the u64 range
    """
    elapsed_seconds = max(0, elapsed_seconds)
    earned = checked_mul(checked_mul(staked_amount, elapsed_seconds), rate)
    return checked_add(last_points, earned)


def to_display_points(scaled: int) -> str:
    """Render scaled points as a decimal string."""
    whole, frac = divmod(scaled, POINTS_SCALE)
    return f"{whole}.{frac:06d}"
