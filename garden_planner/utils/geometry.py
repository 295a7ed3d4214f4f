"""
Geometry helpers over row/segment coordinates.

Coordinates are in centimeters with the origin at the top-left corner of the
garden: x grows eastward along a row, y grows southward across rows.
"""
import numpy as np
from shapely.geometry import box, Polygon

from garden_planner.domain.models import Direction, GardenDimensions, PlantSegment, Row


def segment_center(segment: PlantSegment, row: Row) -> tuple[float, float]:
    """
    Calculate the center point of a segment.

    Args:
        segment: Plant segment
        row: Row containing the segment

    Returns:
        (x, y) center coordinates in cm
    """
    x = (segment.x_start + segment.x_end) / 2
    y = row.y_position + row.height / 2
    return (x, y)


def segment_footprint(segment: PlantSegment, row: Row) -> Polygon:
    """Rectangle covered by a segment."""
    return box(segment.x_start, row.y_position, segment.x_end, row.y_position + row.height)


def calculate_distance(
    segment1: PlantSegment,
    segment2: PlantSegment,
    row1: Row,
    row2: Row,
) -> float:
    """
    Calculate the Euclidean distance between two segment centers.

    Args:
        segment1: First plant segment
        segment2: Second plant segment
        row1: Row containing the first segment
        row2: Row containing the second segment

    Returns:
        Distance in centimeters
    """
    x1, y1 = segment_center(segment1, row1)
    x2, y2 = segment_center(segment2, row2)
    return float(np.hypot(x2 - x1, y2 - y1))


def calculate_area(dimensions: GardenDimensions) -> float:
    """Area of the garden in cm²."""
    return dimensions.width * dimensions.length


def check_overlap(
    segment1: PlantSegment,
    segment2: PlantSegment,
    row1: Row,
    row2: Row,
) -> bool:
    """
    Check whether two segment footprints overlap.

    Footprints that only share an edge do not overlap.

    Args:
        segment1: First plant segment
        segment2: Second plant segment
        row1: Row containing the first segment
        row2: Row containing the second segment

    Returns:
        True if the footprints intersect with positive area
    """
    intersection = segment_footprint(segment1, row1).intersection(
        segment_footprint(segment2, row2)
    )
    return intersection.area > 0


def calculate_direction(
    segment1: PlantSegment,
    segment2: PlantSegment,
    row1: Row,
    row2: Row,
) -> Direction:
    """
    Calculate the cardinal direction from segment1 to segment2.

    The dominant axis of the center-to-center delta decides: a larger |dx|
    gives east/west, otherwise north/south.
    """
    x1, y1 = segment_center(segment1, row1)
    x2, y2 = segment_center(segment2, row2)
    dx = x2 - x1
    dy = y2 - y1

    if abs(dx) > abs(dy):
        return "east" if dx > 0 else "west"
    return "south" if dy > 0 else "north"


def distance_to_boundary(
    segment: PlantSegment,
    row: Row,
    dimensions: GardenDimensions,
) -> float:
    """
    Calculate the minimum distance between a segment and the garden edge.

    Returns:
        Distance in cm (negative when the segment sticks out of the garden)
    """
    return min(
        segment.x_start,
        dimensions.width - segment.x_end,
        row.y_position,
        dimensions.length - (row.y_position + row.height),
    )


def is_within_boundaries(
    segment: PlantSegment,
    row: Row,
    dimensions: GardenDimensions,
) -> bool:
    """Check that a segment lies inside the garden rectangle."""
    return (
        segment.x_start >= 0
        and segment.x_end <= dimensions.width
        and row.y_position >= 0
        and row.y_position + row.height <= dimensions.length
    )
