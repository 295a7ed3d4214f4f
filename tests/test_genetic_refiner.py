"""
Unit tests for the evolutionary refiner.

Tests cover:
- Configuration
- Seeded reproducibility
- Elitism (never worse than the seed)
- Mutation operators
- Cancellation and time limit
"""
import asyncio
import numpy as np
import pytest
from pydantic import ValidationError

from garden_planner.config import Settings
from garden_planner.domain.models import GardenLayout, Row
from garden_planner.services.domain.genetic_refiner import EvolutionConfig, EvolutionaryRefiner
from garden_planner.services.domain.scoring import score_layout

from conftest import make_segment


@pytest.fixture
def seed_layout() -> GardenLayout:
    """Three rows with a poor arrangement: potatoes next to tomatoes."""
    return GardenLayout(rows=[
        Row(id="row-0", y_position=0, height=70, segments=[
            make_segment("tomato", 0, 100, 2, "s0"),
            make_segment("potato", 100, 170, 2, "s1"),
        ]),
        Row(id="row-1", y_position=70, height=70, segments=[
            make_segment("basil", 0, 100, 4, "s2"),
            make_segment("carrot", 100, 200, 20, "s3"),
        ]),
        Row(id="row-2", y_position=140, height=70, segments=[
            make_segment("tomato", 0, 150, 3, "s4"),
        ]),
    ])


# ============================================================
# Configuration Tests
# ============================================================

class TestConfiguration:
    """Tests for refiner configuration."""

    def test_default_config(self, scoring_context):
        refiner = EvolutionaryRefiner(scoring_context)

        assert refiner.config.population_size == 100
        assert refiner.config.generations == 50
        assert refiner.config.mutation_rate == 0.15
        assert refiner.config.crossover_rate == 0.7
        assert refiner.config.elite_count == 10
        assert refiner.config.tournament_size == 5

    def test_configure_overrides(self, scoring_context):
        refiner = EvolutionaryRefiner(scoring_context)

        refiner.configure(generations=3, population_size=8)

        assert refiner.config.generations == 3
        assert refiner.config.population_size == 8
        assert refiner.config.elite_count == 10

    @pytest.mark.parametrize("overrides", [
        {"population_size": 0},
        {"generations": 0},
        {"tournament_size": 0},
        {"elite_count": -1},
        {"mutation_rate": 1.5},
        {"crossover_rate": -0.1},
        {"time_limit_seconds": -1.0},
    ])
    def test_invalid_config_rejected(self, overrides):
        with pytest.raises(ValueError):
            EvolutionConfig(**overrides)

    def test_configure_rejects_invalid_override(self, scoring_context):
        refiner = EvolutionaryRefiner(scoring_context)

        with pytest.raises(ValueError, match="tournament_size"):
            refiner.configure(tournament_size=0)

    @pytest.mark.parametrize("field, value", [
        ("refinement_population_size", 0),
        ("refinement_tournament_size", 0),
        ("refinement_generations", 0),
        ("refinement_mutation_rate", 2.0),
    ])
    def test_settings_reject_invalid_refinement(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})


# ============================================================
# Evolution Tests
# ============================================================

class TestEvolution:
    """Tests for the evolution loop."""

    @pytest.mark.asyncio
    async def test_returns_scored_layout(self, scoring_context, small_evolution_config, rng, seed_layout):
        refiner = EvolutionaryRefiner(scoring_context, small_evolution_config, rng)

        best = await refiner.evolve(seed_layout)

        expected = score_layout(best, scoring_context)
        assert best.score == pytest.approx(expected.score)
        assert best.metrics == expected.metrics
        assert refiner.generations_run == small_evolution_config.generations

    @pytest.mark.asyncio
    async def test_never_worse_than_seed(self, scoring_context, small_evolution_config, rng, seed_layout):
        """The seed survives as an elite, so the result scores at least as well."""
        refiner = EvolutionaryRefiner(scoring_context, small_evolution_config, rng)
        seed_score = score_layout(seed_layout, scoring_context).score

        best = await refiner.evolve(seed_layout)

        assert best.score >= seed_score - 1e-9

    @pytest.mark.asyncio
    async def test_seed_is_not_mutated(self, scoring_context, small_evolution_config, rng, seed_layout):
        original = seed_layout.clone()
        refiner = EvolutionaryRefiner(scoring_context, small_evolution_config, rng)

        await refiner.evolve(seed_layout)

        assert seed_layout == original

    @pytest.mark.asyncio
    async def test_same_seed_same_result(self, scoring_context, small_evolution_config, seed_layout):
        first = await EvolutionaryRefiner(
            scoring_context, small_evolution_config, np.random.default_rng(7)
        ).evolve(seed_layout)
        second = await EvolutionaryRefiner(
            scoring_context, small_evolution_config, np.random.default_rng(7)
        ).evolve(seed_layout)

        assert first == second

    @pytest.mark.asyncio
    async def test_rows_keep_their_geometry(self, scoring_context, small_evolution_config, rng, seed_layout):
        """Operators never move rows or push segments past the garden edge."""
        refiner = EvolutionaryRefiner(scoring_context, small_evolution_config, rng)

        best = await refiner.evolve(seed_layout)

        assert [(r.y_position, r.height) for r in best.rows] == [
            (r.y_position, r.height) for r in seed_layout.rows
        ]
        for row in best.rows:
            for segment in row.segments:
                assert 0 <= segment.x_start < segment.x_end <= scoring_context.dimensions.width


# ============================================================
# Cancellation Tests
# ============================================================

class TestCancellation:
    """Tests for early stopping."""

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, scoring_context, small_evolution_config, rng, seed_layout):
        cancel_event = asyncio.Event()
        cancel_event.set()
        refiner = EvolutionaryRefiner(scoring_context, small_evolution_config, rng)

        best = await refiner.evolve(seed_layout, cancel_event)

        assert refiner.generations_run == 0
        assert best.score > 0

    @pytest.mark.asyncio
    async def test_time_limit(self, scoring_context, rng, seed_layout):
        config = EvolutionConfig(
            population_size=6, generations=1000, elite_count=1, tournament_size=2,
            time_limit_seconds=0.0,
        )
        refiner = EvolutionaryRefiner(scoring_context, config, rng)

        await refiner.evolve(seed_layout)

        assert refiner.generations_run < 1000


# ============================================================
# Mutation Operator Tests
# ============================================================

class TestMutationOperators:
    """Tests for the individual mutation operators."""

    def test_swap_segments_between_rows(self, scoring_context, rng, seed_layout):
        refiner = EvolutionaryRefiner(scoring_context, rng=rng)
        layout = seed_layout.clone()
        before = sorted((s.vegetable_id, s.plant_count) for r in layout.rows for s in r.segments)

        refiner._swap_segments(layout)

        after = sorted((s.vegetable_id, s.plant_count) for r in layout.rows for s in r.segments)
        assert after == before

    def test_swap_segments_needs_two_rows(self, scoring_context, rng):
        refiner = EvolutionaryRefiner(scoring_context, rng=rng)
        layout = GardenLayout(rows=[Row(id="row-0", y_position=0, height=60, segments=[
            make_segment("tomato", 0, 100, 2),
        ])])

        refiner._swap_segments(layout)

        assert layout.rows[0].segments[0].vegetable_id == "tomato"

    def test_adjust_width_stays_within_ten_percent(self, scoring_context, seed_layout):
        for seed in range(20):
            refiner = EvolutionaryRefiner(scoring_context, rng=np.random.default_rng(seed))
            layout = seed_layout.clone()

            refiner._adjust_segment_position(layout)

            for row, original_row in zip(layout.rows, seed_layout.rows):
                for segment, original in zip(row.segments, original_row.segments):
                    assert segment.x_start == original.x_start
                    assert segment.width <= original.width * 1.1 + 1e-9
                    assert segment.width >= min(original.width * 0.9, 50) - 1e-9
                    if segment.width != original.width:
                        plant_spacing = scoring_context.vegetables[segment.vegetable_id].spacing.plant_spacing
                        assert segment.plant_count == int(segment.width // plant_spacing)

    def test_adjust_width_never_overlaps_next_segment(self, scoring_context, seed_layout):
        for seed in range(20):
            refiner = EvolutionaryRefiner(scoring_context, rng=np.random.default_rng(seed))
            layout = seed_layout.clone()

            refiner._adjust_segment_position(layout)

            for row in layout.rows:
                for left, right in zip(row.segments, row.segments[1:]):
                    assert left.x_end <= right.x_start

    def test_swap_vegetable_types_keeps_geometry(self, scoring_context, rng, seed_layout):
        refiner = EvolutionaryRefiner(scoring_context, rng=rng)
        layout = seed_layout.clone()

        refiner._swap_vegetable_types(layout)

        for row, original_row in zip(layout.rows, seed_layout.rows):
            for segment, original in zip(row.segments, original_row.segments):
                assert (segment.x_start, segment.x_end, segment.plant_count) == (
                    original.x_start, original.x_end, original.plant_count
                )
        assert sorted(s.vegetable_id for r in layout.rows for s in r.segments) == sorted(
            s.vegetable_id for r in seed_layout.rows for s in r.segments
        )
