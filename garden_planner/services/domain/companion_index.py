"""
Domain service: Companion planting rule index and neighbor lookup.

Rules describe unordered vegetable pairs. The index stores every rule under
both orderings so lookups never depend on argument order.
"""
from collections import defaultdict
from typing import Iterable, Iterator, Optional
import logging

from garden_planner.domain.models import (
    CompanionRelationship,
    CompanionRule,
    GardenLayout,
    PlantSegment,
    Row,
)
from garden_planner.utils.geometry import calculate_distance

logger = logging.getLogger(__name__)

DEFAULT_EFFECTIVE_RANGE = 100.0
"""Range in cm over which a rule without max_distance decays to zero."""

RELATIONSHIP_VALUES: dict[str, int] = {
    "beneficial": 10,
    "helpful": 5,
    "neutral": 0,
    "avoid": -5,
    "antagonistic": -10,
}

POSITIVE_RELATIONSHIPS = frozenset({"beneficial", "helpful"})
NEGATIVE_RELATIONSHIPS = frozenset({"avoid", "antagonistic"})


def relationship_value(relationship: CompanionRelationship) -> int:
    """Numeric value of a relationship, higher is better."""
    return RELATIONSHIP_VALUES[relationship]


def proximity_factor(distance: float, rule: CompanionRule) -> float:
    """
    Linear decay of a rule's effect with distance.

    Full effect at 0 cm, no effect at the rule's effective range
    (max_distance, 100 cm when unset). The same curve applies to positive
    and negative rules; min_distance only matters for violation checks.

    Args:
        distance: Distance between the two plantings in cm
        rule: Companion rule

    Returns:
        Factor between 0 and 1
    """
    effective_range = DEFAULT_EFFECTIVE_RANGE
    if rule.distance is not None and rule.distance.max_distance:
        effective_range = rule.distance.max_distance

    factor = 1 - distance / effective_range
    return max(0.0, min(1.0, factor))


class CompanionRuleIndex:
    """
    Symmetric lookup structure over companion rules.

    Built once from the catalog and treated as read-only afterwards.
    """

    def __init__(self):
        self._matrix: dict[str, dict[str, CompanionRule]] = defaultdict(dict)
        self._rules: list[CompanionRule] = []

    @classmethod
    def build(cls, rules: Iterable[CompanionRule]) -> "CompanionRuleIndex":
        """
        Build an index from a list of rules.

        A later rule for the same pair overwrites the earlier one.

        Args:
            rules: Companion rules in any order

        Returns:
            CompanionRuleIndex instance
        """
        index = cls()
        for rule in rules:
            index._matrix[rule.vegetable1_id][rule.vegetable2_id] = rule
            index._matrix[rule.vegetable2_id][rule.vegetable1_id] = rule
            index._rules.append(rule)

        logger.debug(f"Indexed {len(index._rules)} companion rules "
                     f"over {len(index._matrix)} vegetables")
        return index

    def __len__(self) -> int:
        return len(self._rules)

    def lookup(self, vegetable1_id: str, vegetable2_id: str) -> Optional[CompanionRule]:
        """Rule for a pair of vegetables, in either order."""
        neighbors = self._matrix.get(vegetable1_id)
        if neighbors is None:
            return None
        return neighbors.get(vegetable2_id)

    def rules_for(self, vegetable_id: str) -> list[CompanionRule]:
        """All rules involving a vegetable."""
        return list(self._matrix.get(vegetable_id, {}).values())

    def effective_strength(
        self,
        vegetable1_id: str,
        vegetable2_id: str,
        distance: float,
    ) -> float:
        """
        Strength of a pair's interaction at a given distance.

        Returns:
            rule.strength scaled by the proximity factor, or 0 without a rule
        """
        rule = self.lookup(vegetable1_id, vegetable2_id)
        if rule is None:
            return 0.0
        return rule.strength * proximity_factor(distance, rule)

    def are_companions(self, vegetable1_id: str, vegetable2_id: str) -> bool:
        rule = self.lookup(vegetable1_id, vegetable2_id)
        return rule is not None and rule.relationship in POSITIVE_RELATIONSHIPS

    def are_antagonistic(self, vegetable1_id: str, vegetable2_id: str) -> bool:
        rule = self.lookup(vegetable1_id, vegetable2_id)
        return rule is not None and rule.relationship in NEGATIVE_RELATIONSHIPS


def validate_minimum_distance(
    segment1: PlantSegment,
    segment2: PlantSegment,
    row1: Row,
    row2: Row,
    rule: CompanionRule,
) -> bool:
    """
    Check that two segments respect a rule's minimum separation.

    Returns:
        True if the rule has no min_distance or the segments are far enough apart
    """
    if rule.distance is None or not rule.distance.min_distance:
        return True
    distance = calculate_distance(segment1, segment2, row1, row2)
    return distance >= rule.distance.min_distance


def find_neighbors(
    layout: GardenLayout,
    row_index: int,
    segment_index: int,
) -> list[tuple[PlantSegment, Row]]:
    """
    Find the neighbors of a segment.

    Neighbors are every other segment in the same row plus every segment in
    the rows directly above and below (by index; rows are contiguous).

    Args:
        layout: Garden layout
        row_index: Index of the segment's row
        segment_index: Index of the segment within its row

    Returns:
        List of (neighbor segment, neighbor row) tuples
    """
    rows = layout.rows
    current_row = rows[row_index]
    neighbors = [
        (other, current_row)
        for k, other in enumerate(current_row.segments)
        if k != segment_index
    ]

    if row_index > 0:
        previous_row = rows[row_index - 1]
        neighbors.extend((other, previous_row) for other in previous_row.segments)

    if row_index < len(rows) - 1:
        next_row = rows[row_index + 1]
        neighbors.extend((other, next_row) for other in next_row.segments)

    return neighbors


def iter_neighbor_pairs(
    layout: GardenLayout,
) -> Iterator[tuple[PlantSegment, Row, PlantSegment, Row]]:
    """
    Yield every unordered pair of neighboring segments exactly once.

    Same-row pairs are yielded left to right, cross-row pairs from each row
    to the row below it.
    """
    rows = layout.rows
    for i, row in enumerate(rows):
        for j, segment in enumerate(row.segments):
            for other in row.segments[j + 1:]:
                yield segment, row, other, row
            if i + 1 < len(rows):
                next_row = rows[i + 1]
                for other in next_row.segments:
                    yield segment, row, other, next_row
