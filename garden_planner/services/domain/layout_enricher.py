"""
Domain service: Neighbor relationship metadata for scored layouts.
"""
import logging

from garden_planner.domain.models import CompanionInfo, GardenLayout
from garden_planner.services.domain.companion_index import (
    NEGATIVE_RELATIONSHIPS,
    CompanionRuleIndex,
    find_neighbors,
)
from garden_planner.utils.geometry import calculate_direction, calculate_distance

logger = logging.getLogger(__name__)

NO_RELATION_REASON = "No known companion relationship"


def enrich_companion_info(layout: GardenLayout, rule_index: CompanionRuleIndex) -> GardenLayout:
    """
    Annotate every segment with its neighbors' relationships.

    Args:
        layout: Scored layout
        rule_index: Companion rule index

    Returns:
        Copy of the layout whose segments carry a companions list
    """
    enriched = layout.clone()

    for row_index, row in enumerate(enriched.rows):
        for segment_index, segment in enumerate(row.segments):
            companions = []
            for neighbor, neighbor_row in find_neighbors(enriched, row_index, segment_index):
                rule = rule_index.lookup(segment.vegetable_id, neighbor.vegetable_id)
                companions.append(CompanionInfo(
                    vegetable_id=neighbor.vegetable_id,
                    relationship=rule.relationship if rule else "neutral",
                    direction=calculate_direction(segment, neighbor, row, neighbor_row),
                    reason=rule.reason if rule and rule.reason else NO_RELATION_REASON,
                ))
            segment.companions = companions

    return enriched


def find_antagonistic_pairs(
    layout: GardenLayout,
    rule_index: CompanionRuleIndex,
    default_min_distance: float = 80.0,
) -> list[str]:
    """
    Find vegetables planted too close to an antagonistic neighbor.

    A neighbor pair counts when its rule is antagonistic or avoid and the
    center-to-center distance is below the rule's min_distance.

    Returns:
        Vegetable ids involved, in order of discovery
    """
    affected: dict[str, None] = {}

    for row_index, row in enumerate(layout.rows):
        for segment_index, segment in enumerate(row.segments):
            for neighbor, neighbor_row in find_neighbors(layout, row_index, segment_index):
                rule = rule_index.lookup(segment.vegetable_id, neighbor.vegetable_id)
                if rule is None or rule.relationship not in NEGATIVE_RELATIONSHIPS:
                    continue

                min_distance = default_min_distance
                if rule.distance is not None and rule.distance.min_distance:
                    min_distance = rule.distance.min_distance

                distance = calculate_distance(segment, neighbor, row, neighbor_row)
                if distance < min_distance:
                    affected[segment.vegetable_id] = None
                    affected[neighbor.vegetable_id] = None

    if affected:
        logger.debug(f"Antagonistic neighbors too close: {list(affected)}")
    return list(affected)
