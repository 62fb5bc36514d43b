"""Score calculation for evaluation reports."""
from __future__ import annotations

import logging
import math
import numbers
from typing import Iterable, List, Mapping, Optional, Sequence

from .locales import PROGRESS_TAGS, progress_tag_for_label
from .models import Answer, Criterion, Report, ValidationError

RATING_TO_PERCENTAGE: Mapping[int, float] = {1: 25.0, 2: 50.0, 3: 75.0, 4: 100.0}
PROGRESS_TO_PERCENTAGE: Mapping[str, float] = {"advanced": 100.0, "on_track": 75.0, "delayed": 25.0}

logger = logging.getLogger("teacheval.scoring")


def _rating_value(value: object) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    if not math.isfinite(value) or value != int(value):
        return None
    return int(value)


def rating_percentage(value: object) -> Optional[float]:
    """Percentage for a 1-4 rating, ``None`` when unanswered or malformed."""

    rating = _rating_value(value)
    if rating is None or rating <= 0:
        return None
    return RATING_TO_PERCENTAGE.get(rating)


def resolve_progress(criterion: Criterion, value: str) -> Optional[str]:
    """Map a select answer to its progress tag.

    Position in the criterion's own options wins, then a bare tag, then any
    language's display label for a tag.
    """

    text = value.strip()
    if text in criterion.options:
        rank = criterion.options.index(text)
        if rank < len(PROGRESS_TAGS):
            return PROGRESS_TAGS[rank]
    if text in PROGRESS_TO_PERCENTAGE:
        return text
    return progress_tag_for_label(text)


def criterion_percentage(criterion: Criterion, value: object) -> Optional[float]:
    """Percentage contributed by one answer, ``None`` if it is not counted."""

    if criterion.type == "rating":
        return rating_percentage(value)
    if criterion.type == "select":
        if not isinstance(value, str) or not value:
            return None
        tag = resolve_progress(criterion, value)
        if tag is None:
            logger.debug("Unrecognized option %r for criterion %s scored as 0", value, criterion.id)
            return 0.0
        return PROGRESS_TO_PERCENTAGE[tag]
    return None


def calculate_total_percentage(criteria: Sequence[Criterion], ratings: Mapping[str, object]) -> float:
    """Unweighted mean over answered scoreable criteria, 0 when none are answered."""

    total = 0.0
    count = 0
    for criterion in criteria:
        percentage = criterion_percentage(criterion, ratings.get(criterion.id))
        if percentage is None:
            continue
        total += percentage
        count += 1
    return total / count if count > 0 else 0.0


def average_percentage(reports: Iterable[Report]) -> float:
    """Plain mean of the stored totals of ``reports``."""

    totals = [report.total_percentage for report in reports]
    return sum(totals) / len(totals) if totals else 0.0


def criterion_average(criterion: Criterion, reports: Iterable[Report]) -> float:
    values: List[float] = []
    for report in reports:
        percentage = criterion_percentage(criterion, report.ratings.get(criterion.id))
        if percentage is not None:
            values.append(percentage)
    return sum(values) / len(values) if values else 0.0


def validate_ratings(criteria: Sequence[Criterion], ratings: Mapping[str, Answer]) -> None:
    """Raise ``ValidationError`` for answers the aggregator would silently degrade.

    A select answer must be one of the criterion's declared options. Bare
    progress tags and display labels are only resolved when scoring stored data.
    """

    lookup = {criterion.id: criterion for criterion in criteria}
    errors: List[str] = []
    for criterion_id, value in ratings.items():
        criterion = lookup.get(criterion_id)
        if criterion is None:
            errors.append(f"Unknown criterion '{criterion_id}'")
            continue
        if criterion.type == "rating":
            rating = _rating_value(value)
            if rating is None or not 0 <= rating <= 4:
                errors.append(f"Rating for '{criterion.label}' must be an integer between 1 and 4")
        elif criterion.type == "select":
            if not isinstance(value, str):
                errors.append(f"Answer for '{criterion.label}' must be text")
            elif value and value.strip() not in criterion.options:
                errors.append(f"'{value}' is not an option of '{criterion.label}'")
        elif not isinstance(value, str):
            errors.append(f"Answer for '{criterion.label}' must be text")
    if errors:
        raise ValidationError("; ".join(errors))


__all__ = [
    "PROGRESS_TO_PERCENTAGE",
    "RATING_TO_PERCENTAGE",
    "average_percentage",
    "calculate_total_percentage",
    "criterion_average",
    "criterion_percentage",
    "rating_percentage",
    "resolve_progress",
    "validate_ratings",
]
