"""
Domain service: Evolutionary refinement of garden layouts.

Evolves a population of layout variants seeded from a feasible layout:
- Tournament selection over the scored population
- Single-point row crossover
- Three mutation operators (segment swap, width adjustment, type swap)
- Elitism

The work is bounded by generations x population size. Between generations
the coroutine yields to the event loop and honours cancellation and an
optional time limit.
"""
from dataclasses import dataclass, replace
from typing import Optional
import asyncio
import logging
import math
import time

import numpy as np

from garden_planner.domain.models import GardenLayout, PlantSegment
from garden_planner.services.domain.scoring import ScoringContext, apply_score, score_layout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvolutionConfig:
    """Configuration for the evolutionary refiner."""

    population_size: int = 100
    """Number of layouts per generation"""

    generations: int = 50
    """Fixed number of generations"""

    mutation_rate: float = 0.15
    """Probability that an offspring is mutated"""

    crossover_rate: float = 0.7
    """Probability that an offspring comes from crossover rather than cloning"""

    elite_count: int = 10
    """Top layouts carried unchanged into the next generation"""

    tournament_size: int = 5
    """Individuals sampled per tournament"""

    time_limit_seconds: Optional[float] = None
    """Wall-clock budget checked between generations"""

    def __post_init__(self):
        if self.population_size < 1:
            raise ValueError(f"population_size must be at least 1, got {self.population_size}")
        if self.generations < 1:
            raise ValueError(f"generations must be at least 1, got {self.generations}")
        if self.tournament_size < 1:
            raise ValueError(f"tournament_size must be at least 1, got {self.tournament_size}")
        if self.elite_count < 0:
            raise ValueError(f"elite_count cannot be negative, got {self.elite_count}")
        for name in ("mutation_rate", "crossover_rate"):
            rate = getattr(self, name)
            if not 0.0 <= rate <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {rate}")
        if self.time_limit_seconds is not None and self.time_limit_seconds < 0:
            raise ValueError(f"time_limit_seconds cannot be negative, got {self.time_limit_seconds}")


@dataclass
class ScoredLayout:
    layout: GardenLayout
    fitness: float


class EvolutionaryRefiner:
    """
    Domain service evolving layouts to maximise the combined score.

    Randomness comes from the injected numpy Generator so runs can be
    reproduced with a seed.
    """

    def __init__(
        self,
        context: ScoringContext,
        config: Optional[EvolutionConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize the refiner.

        Args:
            context: Scoring context of the garden being optimized
            config: Evolution parameters (defaults when omitted)
            rng: Random generator (fresh unseeded generator when omitted)
        """
        self.context = context
        self.config = config or EvolutionConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.generations_run = 0

    def configure(self, **overrides) -> None:
        """Override evolution parameters, e.g. configure(generations=20)."""
        self.config = replace(self.config, **overrides)

    async def evolve(
        self,
        seed_layout: GardenLayout,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GardenLayout:
        """
        Evolve a seed layout.

        Args:
            seed_layout: Feasible layout from the generator
            cancel_event: Set to stop evolving after the current generation

        Returns:
            Best layout of the final population, with score and metrics applied
        """
        config = self.config
        started = time.perf_counter()
        self.generations_run = 0

        population = self._initialize_population(seed_layout)
        logger.info(f"Evolving {len(population)} layouts for up to {config.generations} generations")

        for generation in range(config.generations):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Evolution cancelled after {generation} generations")
                break
            if (config.time_limit_seconds is not None
                    and time.perf_counter() - started > config.time_limit_seconds):
                logger.warning(f"Evolution time limit reached after {generation} generations")
                break

            scored = self._score_population(population)

            next_generation = [s.layout.clone() for s in scored[:config.elite_count]]

            while len(next_generation) < config.population_size:
                parent1 = self._tournament_selection(scored)
                parent2 = self._tournament_selection(scored)

                if self.rng.random() < config.crossover_rate:
                    offspring = self._crossover(parent1, parent2)
                else:
                    offspring = parent1.clone()

                next_generation.append(self._mutate(offspring))

            population = next_generation
            self.generations_run = generation + 1
            logger.debug(f"Generation {generation}: best fitness {scored[0].fitness:.4f}")

            await asyncio.sleep(0)

        best = self._score_population(population)[0]
        logger.info(f"Evolution finished after {self.generations_run} generations, "
                    f"best fitness {best.fitness:.4f}")
        return apply_score(best.layout, score_layout(best.layout, self.context))

    def _score_population(self, population: list[GardenLayout]) -> list[ScoredLayout]:
        """Score every individual and sort by fitness, best first."""
        scored = [
            ScoredLayout(layout=layout, fitness=score_layout(layout, self.context).score)
            for layout in population
        ]
        scored.sort(key=lambda s: s.fitness, reverse=True)
        return scored

    def _initialize_population(self, seed_layout: GardenLayout) -> list[GardenLayout]:
        """Seed layout plus variants with one to three mutation operators applied."""
        population = [seed_layout.clone()]

        while len(population) < self.config.population_size:
            variant = seed_layout.clone()
            for _ in range(int(self.rng.integers(1, 4))):
                self._apply_random_operator(variant)
            population.append(variant)

        return population

    def _tournament_selection(self, scored: list[ScoredLayout]) -> GardenLayout:
        """Best of tournament_size individuals drawn with replacement."""
        indices = self.rng.integers(0, len(scored), size=self.config.tournament_size)
        winner = max((scored[i] for i in indices), key=lambda s: s.fitness)
        return winner.layout.clone()

    def _crossover(self, parent1: GardenLayout, parent2: GardenLayout) -> GardenLayout:
        """
        Single-point row crossover.

        The offspring keeps parent1's rows before a random point and takes
        parent2's rows at the same indices from that point on.
        """
        offspring = parent1.clone()
        if not parent1.rows or not parent2.rows:
            return offspring

        min_rows = min(len(parent1.rows), len(parent2.rows))
        crossover_point = int(self.rng.integers(0, min_rows))

        for i in range(crossover_point, min_rows):
            offspring.rows[i] = parent2.rows[i].clone()

        return offspring

    def _mutate(self, layout: GardenLayout) -> GardenLayout:
        """Apply one mutation operator with probability mutation_rate."""
        if self.rng.random() > self.config.mutation_rate:
            return layout
        self._apply_random_operator(layout)
        return layout

    def _apply_random_operator(self, layout: GardenLayout) -> None:
        mutation_type = self.rng.random()

        if mutation_type < 0.4:
            self._swap_segments(layout)
        elif mutation_type < 0.7:
            self._adjust_segment_position(layout)
        else:
            self._swap_vegetable_types(layout)

    def _swap_segments(self, layout: GardenLayout) -> None:
        """Swap vegetable and plant count of random segments in two rows."""
        row_count = len(layout.rows)
        if row_count < 2:
            return

        row1_index, row2_index = self.rng.choice(row_count, size=2, replace=False)
        row1 = layout.rows[row1_index]
        row2 = layout.rows[row2_index]
        if not row1.segments or not row2.segments:
            return

        seg1 = row1.segments[int(self.rng.integers(0, len(row1.segments)))]
        seg2 = row2.segments[int(self.rng.integers(0, len(row2.segments)))]

        seg1.vegetable_id, seg2.vegetable_id = seg2.vegetable_id, seg1.vegetable_id
        seg1.plant_count, seg2.plant_count = seg2.plant_count, seg1.plant_count

    def _adjust_segment_position(self, layout: GardenLayout) -> None:
        """
        Perturb a random segment's width by up to 10%.

        The plant count follows the new width. Changes that would cross the
        garden's right edge or run into the next segment are rejected.
        """
        if not layout.rows:
            return

        row = layout.rows[int(self.rng.integers(0, len(layout.rows)))]
        if not row.segments:
            return

        segment_index = int(self.rng.integers(0, len(row.segments)))
        segment = row.segments[segment_index]

        vegetable = self.context.vegetables.get(segment.vegetable_id)
        if vegetable is None:
            return

        plant_spacing = vegetable.spacing.plant_spacing
        current_width = segment.width
        adjustment = current_width * (self.rng.random() * 0.2 - 0.1)
        new_width = max(plant_spacing, current_width + adjustment)
        new_end = segment.x_start + new_width

        if new_end > self.context.dimensions.width:
            return
        if segment_index + 1 < len(row.segments) and new_end > row.segments[segment_index + 1].x_start:
            return

        segment.x_end = new_end
        segment.plant_count = math.floor(new_width / plant_spacing)

    def _swap_vegetable_types(self, layout: GardenLayout) -> None:
        """
        Swap the vegetable ids of two random segments anywhere in the layout.

        Geometry and plant counts stay put, so spacing may become invalid;
        the spacing score penalises that.
        """
        all_segments: list[PlantSegment] = [
            segment for row in layout.rows for segment in row.segments
        ]
        if len(all_segments) < 2:
            return

        index1, index2 = self.rng.choice(len(all_segments), size=2, replace=False)
        seg1 = all_segments[index1]
        seg2 = all_segments[index2]
        seg1.vegetable_id, seg2.vegetable_id = seg2.vegetable_id, seg1.vegetable_id
