"""
Application service: Orchestration of the layout optimization pipeline.
"""
from typing import Iterable, Optional
import asyncio
import logging
import math
import time

import numpy as np

from garden_planner.config import settings
from garden_planner.domain.models import (
    Garden,
    GardenLayout,
    PlacementResult,
    PlacementWarning,
    SelectedVegetable,
    Vegetable,
)
from garden_planner.services.domain.companion_index import CompanionRuleIndex
from garden_planner.services.domain.genetic_refiner import EvolutionConfig, EvolutionaryRefiner
from garden_planner.services.domain.layout_enricher import (
    enrich_companion_info,
    find_antagonistic_pairs,
)
from garden_planner.services.domain.layout_generator import LayoutGenerator
from garden_planner.services.domain.scoring import (
    ScoringContext,
    apply_score,
    meets_quality_thresholds,
    score_layout,
)
from garden_planner.utils.geometry import calculate_area

logger = logging.getLogger(__name__)

DEFAULT_SHARE_PRIORITY = 3
"""Priority assumed when splitting garden area between selections."""


def compute_target_quantities(
    garden: Garden,
    vegetables: dict[str, Vegetable],
    buffer_factor: float = 1.15,
) -> list[SelectedVegetable]:
    """
    Derive each selection's target plant count from its priority share.

    Each vegetable gets priority / total_priority of the garden area; the
    target is that area divided by the area one plant occupies, with some
    headroom so rows end up full. Requested quantities are advisory only.

    Args:
        garden: Garden with dimensions and selections
        vegetables: Vegetable catalog by id
        buffer_factor: Headroom multiplier applied to the target

    Returns:
        Selections carrying the computed quantity (at least 1)
    """
    selections = garden.selected_vegetables
    total_priority = sum(s.priority or DEFAULT_SHARE_PRIORITY for s in selections)
    total_area = calculate_area(garden.dimensions)

    planned = []
    for selection in selections:
        vegetable = vegetables.get(selection.vegetable_id)
        if vegetable is None:
            planned.append(selection)
            continue

        share = (selection.priority or DEFAULT_SHARE_PRIORITY) / total_priority
        plant_area = vegetable.spacing.plant_spacing * vegetable.spacing.row_spacing
        target_count = math.ceil(total_area * share / plant_area * buffer_factor)

        logger.debug(f"Target for {vegetable.id}: share={share:.1%}, {target_count} plants")
        planned.append(selection.model_copy(update={"quantity": max(1, target_count)}))

    return planned


class GardenOptimizer:
    """
    Application service running one optimization.

    Sequences generation, scoring, refinement, enrichment and validation;
    the domain services hold the logic. optimize() never raises: failures
    come back as an unsuccessful PlacementResult.
    """

    def __init__(
        self,
        vegetables: Iterable[Vegetable],
        rule_index: CompanionRuleIndex,
        garden: Garden,
        refiner_config: Optional[EvolutionConfig] = None,
        enable_refinement: Optional[bool] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize the optimizer.

        Args:
            vegetables: Vegetable catalog
            rule_index: Companion rule index built from the catalog
            garden: Garden dimensions and selections
            refiner_config: Evolution parameters (from settings when omitted)
            enable_refinement: Run the evolutionary refiner (settings when omitted)
            rng: Random generator handed to the refiner
        """
        self.vegetables = {v.id: v for v in vegetables}
        self.rule_index = rule_index
        self.garden = garden
        self.refiner_config = refiner_config or evolution_config_from_settings()
        self.enable_refinement = (
            settings.refinement_enabled if enable_refinement is None else enable_refinement
        )
        self.rng = rng
        self.context = ScoringContext(
            rule_index=rule_index,
            dimensions=garden.dimensions,
            vegetables=self.vegetables,
        )

    async def optimize(self, cancel_event: Optional[asyncio.Event] = None) -> PlacementResult:
        """
        Run the optimization pipeline.

        1. Plan target quantities from priorities
        2. Generate a feasible layout
        3. Refine it with the evolutionary refiner
        4. Score and enrich the result
        5. Collect quality warnings

        Args:
            cancel_event: Set to stop refinement early

        Returns:
            PlacementResult (always, even on failure)
        """
        start_time = time.perf_counter()
        logger.info(f"Optimizing garden {self.garden.dimensions.width:.0f}x"
                    f"{self.garden.dimensions.length:.0f}cm with "
                    f"{len(self.garden.selected_vegetables)} vegetables")

        try:
            selections = compute_target_quantities(
                self.garden, self.vegetables, settings.quantity_buffer_factor
            )
            generator = LayoutGenerator(self.garden.dimensions, self.vegetables.values(), selections)
            initial_layout = generator.generate()

            if initial_layout is None:
                logger.warning("Layout generation produced no rows")
                return PlacementResult(
                    success=False,
                    warnings=[PlacementWarning(
                        type="insufficient_space",
                        severity="high",
                        message="The selected vegetables cannot be placed in the garden. "
                                "Enlarge the garden or select fewer vegetables.",
                        affected_vegetables=[s.vegetable_id for s in self.garden.selected_vegetables],
                    )],
                    computation_time=_elapsed_ms(start_time),
                )

            initial_score = score_layout(initial_layout, self.context)
            logger.info(f"Initial layout score: {initial_score.score:.4f}")

            iterations = None
            if self.enable_refinement:
                refiner = EvolutionaryRefiner(self.context, self.refiner_config, self.rng)
                refined_layout = await refiner.evolve(initial_layout, cancel_event)
                iterations = refiner.generations_run
            else:
                refined_layout = initial_layout

            final_layout = apply_score(refined_layout, score_layout(refined_layout, self.context))
            logger.info(f"Final layout score: {final_layout.score:.4f}")

            final_layout = enrich_companion_info(final_layout, self.rule_index)
            warnings = self._validate_layout(final_layout)

            unplaced = generator.unplaced_vegetables(initial_layout)
            if unplaced:
                warnings.append(PlacementWarning(
                    type="insufficient_space",
                    severity="high",
                    message=f"The garden is too small to hold everything. "
                            f"{len(unplaced)} vegetable(s) were not placed.",
                    affected_vegetables=unplaced,
                ))

            return PlacementResult(
                success=True,
                layout=final_layout,
                warnings=warnings,
                computation_time=_elapsed_ms(start_time),
                iterations=iterations,
            )

        except Exception as e:
            logger.exception(f"Optimization failed: {str(e)}")
            return PlacementResult(
                success=False,
                warnings=[PlacementWarning(
                    type="insufficient_space",
                    severity="high",
                    message=f"Optimization error: {str(e)}",
                    affected_vegetables=[],
                )],
                computation_time=_elapsed_ms(start_time),
            )

    def _validate_layout(self, layout: GardenLayout) -> list[PlacementWarning]:
        """
        Build quality warnings for a scored layout.

        Args:
            layout: Scored and enriched layout

        Returns:
            List of warnings (possibly empty)
        """
        metrics = layout.metrics
        warnings = []

        if metrics.utilisation_rate < settings.min_utilization:
            warnings.append(PlacementWarning(
                type="low_utilisation",
                severity="low",
                message=f"Only {metrics.utilisation_rate * 100:.0f}% of the garden is used. "
                        f"You could add more vegetables.",
            ))

        if metrics.companion_score < settings.min_companion_score:
            warnings.append(PlacementWarning(
                type="bad_companion",
                severity="medium",
                message="Antagonistic neighbors are present. Some vegetables may "
                        "struggle to grow together.",
                affected_vegetables=find_antagonistic_pairs(
                    layout, self.rule_index, settings.default_antagonist_min_distance
                ),
            ))

        if metrics.spacing_score < settings.min_spacing_score:
            warnings.append(PlacementWarning(
                type="spacing_violation",
                severity="medium",
                message="Some spacings do not follow the recommendations.",
            ))

        if not meets_quality_thresholds(
            layout,
            min_utilization=settings.min_utilization,
            min_companion_score=settings.min_companion_score,
            min_spacing_score=settings.min_spacing_score,
        ):
            warnings.append(PlacementWarning(
                type="insufficient_space",
                severity="low",
                message="The layout could be improved. Consider adjusting the "
                        "dimensions or the vegetable selection.",
            ))

        return warnings


def evolution_config_from_settings() -> EvolutionConfig:
    """Evolution parameters from application settings."""
    return EvolutionConfig(
        population_size=settings.refinement_population_size,
        generations=settings.refinement_generations,
        mutation_rate=settings.refinement_mutation_rate,
        crossover_rate=settings.refinement_crossover_rate,
        elite_count=settings.refinement_elite_count,
        tournament_size=settings.refinement_tournament_size,
        time_limit_seconds=settings.refinement_time_limit_seconds,
    )


def _elapsed_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * 1000
