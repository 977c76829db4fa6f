"""Facility rating aggregate."""

from washpoint.core.exceptions import ValidationError

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating: int) -> None:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")


def add_rating(average: float, count: int, rating: int) -> tuple[float, int]:
    """Fold one rating into a running mean.

    Returns:
        Tuple of (new_average, new_count)
    """
    validate_rating(rating)
    new_count = count + 1
    new_average = (average * count + rating) / new_count
    return new_average, new_count


def remove_rating(average: float, count: int, rating: int) -> tuple[float, int]:
    """Take one rating back out of a running mean."""
    if count <= 1:
        return 0.0, 0
    new_count = count - 1
    new_average = (average * count - rating) / new_count
    return max(new_average, 0.0), new_count
