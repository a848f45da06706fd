"""
Ratings module - employer ratings, worker averages and designation levels.
"""
from decimal import Decimal, ROUND_HALF_UP

from .exceptions import ValidationError
from .models import Designation

DEFAULT_WORKER_RATING = Decimal('1.0')
DEFAULT_EMPLOYER_RATING = Decimal('3.0')

MIN_RATING = 1
MAX_RATING = 5

# Designation thresholds (lower bound of each level)
DESIGNATION_THRESHOLDS = {
    Designation.L3: Decimal('4.0'),
    Designation.L2: Decimal('3.0'),
    Designation.L1: Decimal('0'),
}

DESIGNATION_LABELS = {
    Designation.L1: 'Beginner',
    Designation.L2: 'Intermediate',
    Designation.L3: 'Expert',
}


def validate_rating(value) -> int:
    """
    Validate a star rating given by an employer.

    Returns:
        The rating as an int between 1 and 5

    Raises:
        ValidationError: not a whole number in range
    """
    if isinstance(value, bool):
        raise ValidationError("Rating must be a whole number", rating=value)
    try:
        rating = Decimal(str(value))
    except ArithmeticError:
        raise ValidationError("Rating must be a whole number", rating=value)
    if not rating.is_finite():
        raise ValidationError("Rating must be a whole number", rating=str(value))
    if rating % 1 != 0 or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}", rating=str(value))
    return int(rating)


def average_rating(rating_sum, rating_count, default: Decimal = DEFAULT_WORKER_RATING) -> Decimal:
    """Mean of all ratings received, to two decimals; default when unrated."""
    count = int(rating_count or 0)
    if count <= 0:
        return default
    mean = Decimal(str(rating_sum)) / Decimal(count)
    return mean.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def calculate_designation(rating) -> str:
    """
    Map an average rating to a designation.

    Rules:
    - L1: rating < 3.0
    - L2: 3.0 <= rating < 4.0
    - L3: rating >= 4.0
    """
    rating = Decimal(str(rating))
    if rating >= DESIGNATION_THRESHOLDS[Designation.L3]:
        return Designation.L3
    elif rating >= DESIGNATION_THRESHOLDS[Designation.L2]:
        return Designation.L2
    return Designation.L1
