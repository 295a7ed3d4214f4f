"""
API router for layout optimization endpoints.
"""
from fastapi import APIRouter, HTTPException, Request
import logging

from garden_planner.api.dependencies import CatalogDep, OptimizerFactoryDep
from garden_planner.api.rate_limit import DEFAULT_LIMIT, limiter
from garden_planner.api.v1.models.requests import OptimizeLayoutRequest
from garden_planner.domain.models import PlacementResult

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/layouts",
    tags=["layouts"],
)


@router.post(
    "/optimize",
    response_model=PlacementResult,
    summary="Optimize a garden layout",
    description="""
    Place the selected vegetables in a rectangular garden.

    This endpoint:
    1. Derives target quantities from each vegetable's priority share of the area
    2. Packs rows and segments greedily under spacing constraints
    3. Refines the layout with an evolutionary search
    4. Scores companion quality, utilisation, diversity and spacing
    5. Returns the layout with neighbor relationships and quality warnings

    An unsuccessful optimization is still a 200 response with `success: false`
    and a warning explaining why.
    """,
    responses={
        200: {
            "description": "Optimization finished (check `success` and `warnings`)",
        },
        404: {
            "description": "Unknown vegetable id in the selection",
        },
        422: {
            "description": "Invalid dimensions or empty selection",
        },
        429: {
            "description": "Rate limit exceeded",
        },
        500: {
            "description": "Internal server error or catalog failure",
        }
    }
)
@limiter.limit(DEFAULT_LIMIT)
async def optimize_layout(
    request: Request,
    body: OptimizeLayoutRequest,
    catalog: CatalogDep,
    optimizer_factory: OptimizerFactoryDep,
) -> PlacementResult:
    """
    Optimize a garden layout.

    Args:
        request: Incoming request (used by the rate limiter)
        body: Garden dimensions and vegetable selection
        catalog: Vegetable catalog (injected dependency)
        optimizer_factory: Optimizer factory (injected dependency)

    Returns:
        PlacementResult with the layout and warnings

    Raises:
        HTTPException: If a selected vegetable is not in the catalog
    """
    missing = catalog.missing_ids([s.vegetable_id for s in body.selected_vegetables])
    if missing:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown vegetable id(s): {', '.join(missing)}"
        )

    # Delegate to service layer (no business logic here)
    optimizer = optimizer_factory(body.to_garden())
    result = await optimizer.optimize()

    logger.info(f"Optimization finished: success={result.success}, "
                f"{len(result.warnings)} warning(s), {result.computation_time:.0f}ms")
    return result
