"""
Domain service: Layout scoring.

Four independent sub-scores, each in [0, 1]:
- Companion quality of neighboring segments
- Space utilisation
- Diversity of vegetable types
- Spacing compliance

combined into one weighted score. Scoring is pure: it returns a LayoutScore
and leaves the layout untouched; apply_score() produces a scored copy.
"""
from dataclasses import dataclass
from typing import Mapping, Union
import math

from garden_planner.domain.models import (
    GardenDimensions,
    GardenLayout,
    LayoutMetrics,
    LayoutScore,
    Vegetable,
)
from garden_planner.services.domain.companion_index import (
    CompanionRuleIndex,
    iter_neighbor_pairs,
)
from garden_planner.utils.geometry import calculate_area, calculate_distance


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the sub-scores in the combined score."""
    companion: float = 0.4
    utilization: float = 0.3
    diversity: float = 0.2
    spacing: float = 0.1


@dataclass(frozen=True)
class ScoringContext:
    """Read-only data needed to score layouts of one garden."""
    rule_index: CompanionRuleIndex
    dimensions: GardenDimensions
    vegetables: Mapping[str, Vegetable]
    weights: ScoreWeights = ScoreWeights()


def calculate_companion_score(layout: GardenLayout, rule_index: CompanionRuleIndex) -> float:
    """
    Average distance-decayed companion strength over all neighbor pairs.

    Each unordered pair counts once. The average in [-10, 10] is mapped to
    [0, 1]; without any neighbor pair the score is a neutral 0.5.
    """
    total = 0.0
    pair_count = 0

    for segment, row, neighbor, neighbor_row in iter_neighbor_pairs(layout):
        distance = calculate_distance(segment, neighbor, row, neighbor_row)
        total += rule_index.effective_strength(segment.vegetable_id, neighbor.vegetable_id, distance)
        pair_count += 1

    if pair_count == 0:
        return 0.5

    average = total / pair_count
    return max(0.0, min(1.0, (average + 10) / 20))


def calculate_utilization(layout: GardenLayout, dimensions: GardenDimensions) -> float:
    """Share of the garden area covered by segments, capped at 1."""
    used_area = sum(
        segment.width * row.height
        for row in layout.rows
        for segment in row.segments
    )
    return max(0.0, min(used_area / calculate_area(dimensions), 1.0))


def calculate_diversity(layout: GardenLayout) -> float:
    """Logarithmic diversity score, saturating around 10 distinct types."""
    vegetable_types = {segment.vegetable_id for row in layout.rows for segment in row.segments}
    return min(math.log(len(vegetable_types) + 1) / math.log(11), 1.0)


def calculate_spacing_score(layout: GardenLayout, vegetables: Mapping[str, Vegetable]) -> float:
    """
    Spacing compliance of all segments.

    Each segment of a known vegetable is checked twice: its row is at least
    90% of the required row spacing, and it is at least 85% of the width its
    plants need. Failed checks are counted against one slot per segment, so
    a segment failing both weighs double.
    """
    violations = 0
    total_checks = 0

    for row in layout.rows:
        for segment in row.segments:
            vegetable = vegetables.get(segment.vegetable_id)
            if vegetable is None:
                continue

            total_checks += 1

            if row.height < vegetable.spacing.row_spacing * 0.9:
                violations += 1

            required_width = segment.plant_count * vegetable.spacing.plant_spacing
            if segment.width < required_width * 0.85:
                violations += 1

    if total_checks == 0:
        return 1.0

    return max(0.0, 1 - violations / total_checks)


def score_layout(layout: GardenLayout, context: ScoringContext) -> LayoutScore:
    """
    Score a layout.

    Args:
        layout: Layout to evaluate (not modified)
        context: Rules, garden dimensions and vegetables

    Returns:
        LayoutScore with the weighted score and the four sub-scores
    """
    metrics = LayoutMetrics(
        companion_score=calculate_companion_score(layout, context.rule_index),
        utilisation_rate=calculate_utilization(layout, context.dimensions),
        diversity_score=calculate_diversity(layout),
        spacing_score=calculate_spacing_score(layout, context.vegetables),
    )
    weights = context.weights
    score = (
        metrics.companion_score * weights.companion
        + metrics.utilisation_rate * weights.utilization
        + metrics.diversity_score * weights.diversity
        + metrics.spacing_score * weights.spacing
    )
    return LayoutScore(score=score, metrics=metrics)


def apply_score(layout: GardenLayout, layout_score: LayoutScore) -> GardenLayout:
    """Copy of a layout carrying the given score and metrics."""
    scored = layout.clone()
    scored.score = layout_score.score
    scored.metrics = layout_score.metrics.model_copy()
    return scored


def calculate_score_delta(new_layout: GardenLayout, old_layout: GardenLayout) -> float:
    """Positive when the new layout scores better."""
    return new_layout.score - old_layout.score


def meets_quality_thresholds(
    layout: Union[GardenLayout, LayoutMetrics],
    min_utilization: float = 0.5,
    min_companion_score: float = 0.4,
    min_spacing_score: float = 0.7,
) -> bool:
    """
    Check a scored layout against minimum quality thresholds.

    Independent of the combined weighted score.
    """
    metrics = layout.metrics if isinstance(layout, GardenLayout) else layout
    return (
        metrics.utilisation_rate >= min_utilization
        and metrics.companion_score >= min_companion_score
        and metrics.spacing_score >= min_spacing_score
    )
