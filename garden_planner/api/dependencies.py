"""
Dependency injection for FastAPI.
"""
from typing import Annotated, Callable

from fastapi import Depends

from garden_planner.domain.models import Garden
from garden_planner.infrastructure.catalog_client import VegetableCatalog, get_catalog
from garden_planner.services.application.garden_optimizer import GardenOptimizer


OptimizerFactory = Callable[[Garden], GardenOptimizer]

CatalogDep = Annotated[VegetableCatalog, Depends(get_catalog)]


def get_optimizer_factory(catalog: CatalogDep) -> OptimizerFactory:
    """
    Dependency factory for GardenOptimizer.

    The garden comes from the request body, so the dependency hands out a
    factory bound to the loaded catalog.

    Args:
        catalog: Vegetable catalog (injected)

    Returns:
        Callable building a GardenOptimizer for a garden
    """
    def build(garden: Garden) -> GardenOptimizer:
        return GardenOptimizer(
            vegetables=catalog.vegetables,
            rule_index=catalog.rule_index,
            garden=garden,
        )

    return build


# Type aliases for cleaner route signatures
OptimizerFactoryDep = Annotated[OptimizerFactory, Depends(get_optimizer_factory)]
