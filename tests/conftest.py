"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample vegetables and companion rules
- Rule index and scoring context
- Hand-built layouts
- Catalog built from the sample data
- FastAPI test client
"""
import pytest
import numpy as np
from fastapi.testclient import TestClient

from garden_planner.main import app
from garden_planner.domain.models import (
    CompanionDistance,
    CompanionRule,
    Garden,
    GardenDimensions,
    GardenLayout,
    PlantSegment,
    Row,
    SelectedVegetable,
    Spacing,
    Vegetable,
)
from garden_planner.infrastructure.catalog_client import VegetableCatalog
from garden_planner.services.domain.companion_index import CompanionRuleIndex
from garden_planner.services.domain.genetic_refiner import EvolutionConfig
from garden_planner.services.domain.scoring import ScoringContext


def make_vegetable(vegetable_id: str, row_spacing: float, plant_spacing: float) -> Vegetable:
    """Build a vegetable with only the fields the optimizer uses."""
    return Vegetable(
        id=vegetable_id,
        name=vegetable_id.capitalize(),
        spacing=Spacing(row_spacing=row_spacing, plant_spacing=plant_spacing),
    )


def make_rule(
    vegetable1_id: str,
    vegetable2_id: str,
    relationship: str,
    strength: float,
    min_distance: float = None,
    max_distance: float = None,
    reason: str = "",
) -> CompanionRule:
    distance = None
    if min_distance is not None or max_distance is not None:
        distance = CompanionDistance(min_distance=min_distance, max_distance=max_distance)
    return CompanionRule(
        id=f"{vegetable1_id}-{vegetable2_id}",
        vegetable1_id=vegetable1_id,
        vegetable2_id=vegetable2_id,
        relationship=relationship,
        strength=strength,
        reason=reason,
        distance=distance,
    )


def make_segment(
    vegetable_id: str,
    x_start: float,
    x_end: float,
    plant_count: int,
    segment_id: str = None,
) -> PlantSegment:
    return PlantSegment(
        id=segment_id or f"segment-{vegetable_id}-{x_start:.0f}",
        vegetable_id=vegetable_id,
        x_start=x_start,
        x_end=x_end,
        plant_count=plant_count,
    )


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def tomato() -> Vegetable:
    return make_vegetable("tomato", row_spacing=60, plant_spacing=50)


@pytest.fixture
def basil() -> Vegetable:
    return make_vegetable("basil", row_spacing=30, plant_spacing=25)


@pytest.fixture
def carrot() -> Vegetable:
    return make_vegetable("carrot", row_spacing=25, plant_spacing=5)


@pytest.fixture
def potato() -> Vegetable:
    return make_vegetable("potato", row_spacing=70, plant_spacing=35)


@pytest.fixture
def sample_vegetables(tomato, basil, carrot, potato) -> list[Vegetable]:
    return [tomato, basil, carrot, potato]


@pytest.fixture
def vegetables_by_id(sample_vegetables) -> dict[str, Vegetable]:
    return {v.id: v for v in sample_vegetables}


@pytest.fixture
def sample_rules() -> list[CompanionRule]:
    """Tomato/basil beneficial, tomato/potato antagonistic, basil/carrot helpful."""
    return [
        make_rule("tomato", "basil", "beneficial", 8, max_distance=100,
                  reason="Basil repels whiteflies"),
        make_rule("tomato", "potato", "antagonistic", -8, min_distance=120,
                  reason="Shared blight"),
        make_rule("basil", "carrot", "helpful", 4),
    ]


@pytest.fixture
def rule_index(sample_rules) -> CompanionRuleIndex:
    return CompanionRuleIndex.build(sample_rules)


@pytest.fixture
def dimensions() -> GardenDimensions:
    return GardenDimensions(width=400, length=600)


@pytest.fixture
def scoring_context(rule_index, dimensions, vegetables_by_id) -> ScoringContext:
    return ScoringContext(
        rule_index=rule_index,
        dimensions=dimensions,
        vegetables=vegetables_by_id,
    )


@pytest.fixture
def sample_catalog(sample_vegetables, sample_rules) -> VegetableCatalog:
    return VegetableCatalog(vegetables=sample_vegetables, rules=sample_rules)


@pytest.fixture
def sample_garden(dimensions) -> Garden:
    return Garden(
        dimensions=dimensions,
        selected_vegetables=[
            SelectedVegetable(vegetable_id="tomato", priority=8),
            SelectedVegetable(vegetable_id="basil", priority=5),
            SelectedVegetable(vegetable_id="carrot"),
        ],
    )


# ============================================================
# Layout Fixtures
# ============================================================

@pytest.fixture
def two_row_layout() -> GardenLayout:
    """
    Two 60 cm rows in a 400x600 garden.

    Row 0: tomato [0, 200) and basil [200, 300)
    Row 1: carrot [0, 100)
    """
    return GardenLayout(rows=[
        Row(id="row-0", y_position=0, height=60, segments=[
            make_segment("tomato", 0, 200, 4, "seg-tomato"),
            make_segment("basil", 200, 300, 4, "seg-basil"),
        ]),
        Row(id="row-1", y_position=60, height=60, segments=[
            make_segment("carrot", 0, 100, 20, "seg-carrot"),
        ]),
    ])


@pytest.fixture
def small_evolution_config() -> EvolutionConfig:
    """Fast evolution settings for tests."""
    return EvolutionConfig(
        population_size=12,
        generations=5,
        mutation_rate=0.5,
        crossover_rate=0.7,
        elite_count=2,
        tournament_size=3,
    )


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)
