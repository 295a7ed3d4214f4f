"""
Spacing helpers translating a vegetable's spacing requirements into widths,
capacities and pass/fail checks.
"""
import math

from garden_planner.domain.models import PlantSegment, Row, Vegetable
from garden_planner.utils.geometry import calculate_distance


def calculate_required_width(plant_count: int, vegetable: Vegetable) -> float:
    """
    Width needed for a number of plants laid out in a row.

    Args:
        plant_count: Number of plants
        vegetable: Vegetable data

    Returns:
        Required width in cm
    """
    if plant_count <= 0:
        return 0.0
    return plant_count * vegetable.spacing.plant_spacing


def calculate_plant_capacity(width: float, vegetable: Vegetable) -> int:
    """
    How many plants fit in a given width.

    The first plant needs half a spacing from the edge, every following
    plant a full spacing.
    """
    plant_spacing = vegetable.spacing.plant_spacing
    if width < plant_spacing:
        return 0

    remaining_width = width - plant_spacing / 2
    return math.floor(remaining_width / plant_spacing) + 1


def validate_spacing(segment: PlantSegment, row: Row, vegetable: Vegetable) -> bool:
    """
    Check a segment against its vegetable's spacing requirements.

    Returns:
        False if the segment is cramped (under 90% of the expected width)
        or its row is narrower than the vegetable's row spacing
    """
    expected_width = segment.plant_count * vegetable.spacing.plant_spacing
    if segment.width < expected_width * 0.9:
        return False

    if row.height < vegetable.spacing.row_spacing:
        return False

    return True


def get_minimum_spacing(vegetable1: Vegetable, vegetable2: Vegetable) -> float:
    """Minimum spacing between two vegetables: half the larger requirement."""
    spacing1 = max(vegetable1.spacing.row_spacing, vegetable1.spacing.plant_spacing)
    spacing2 = max(vegetable2.spacing.row_spacing, vegetable2.spacing.plant_spacing)
    return max(spacing1, spacing2) / 2


def validate_adjacent_spacing(
    segment1: PlantSegment,
    segment2: PlantSegment,
    vegetable1: Vegetable,
    vegetable2: Vegetable,
) -> bool:
    """Check the gap between two segments of the same row (20% tolerance)."""
    gap = abs(segment2.x_start - segment1.x_end)
    return gap >= get_minimum_spacing(vegetable1, vegetable2) * 0.8


def validate_row_spacing(
    segment1: PlantSegment,
    segment2: PlantSegment,
    row1: Row,
    row2: Row,
    vegetable1: Vegetable,
    vegetable2: Vegetable,
) -> bool:
    """Check the distance between segments in different rows (30% tolerance)."""
    distance = calculate_distance(segment1, segment2, row1, row2)
    return distance >= get_minimum_spacing(vegetable1, vegetable2) * 0.7


def validate_segment_capacity(segment: PlantSegment, vegetable: Vegetable) -> bool:
    """Check that a segment is wide enough for its plant count (10% tolerance)."""
    required_width = calculate_required_width(segment.plant_count, vegetable)
    return segment.width >= required_width * 0.9
