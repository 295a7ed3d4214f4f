"""
API router for vegetable catalog endpoints.
"""
from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Request

from garden_planner.api.dependencies import CatalogDep
from garden_planner.api.rate_limit import DEFAULT_LIMIT, limiter
from garden_planner.api.v1.models.responses import CompanionsResponse, VegetableListResponse


router = APIRouter(
    prefix="/vegetables",
    tags=["vegetables"],
)


@router.get(
    "",
    response_model=VegetableListResponse,
    summary="List vegetables",
    description="Return every vegetable of the catalog with its spacing requirements.",
    responses={
        429: {
            "description": "Rate limit exceeded",
        },
    }
)
@limiter.limit(DEFAULT_LIMIT)
async def list_vegetables(request: Request, catalog: CatalogDep) -> VegetableListResponse:
    return VegetableListResponse(
        count=len(catalog.vegetables),
        vegetables=catalog.vegetables,
    )


@router.get(
    "/{vegetable_id}/companions",
    response_model=CompanionsResponse,
    summary="Get companion rules of a vegetable",
    description="Return the companion rules involving a vegetable, in either position.",
    responses={
        404: {
            "description": "Vegetable not found",
        },
        429: {
            "description": "Rate limit exceeded",
        },
    }
)
@limiter.limit(DEFAULT_LIMIT)
async def get_companions(
    request: Request,
    vegetable_id: Annotated[str, Path(description="Vegetable identifier, e.g. 'tomato'")],
    catalog: CatalogDep,
) -> CompanionsResponse:
    """
    Get the companion rules of a vegetable.

    Raises:
        HTTPException: If the vegetable is not in the catalog
    """
    if catalog.get(vegetable_id) is None:
        raise HTTPException(
            status_code=404,
            detail=f"Vegetable with ID '{vegetable_id}' not found"
        )

    return CompanionsResponse(
        vegetable_id=vegetable_id,
        companions=catalog.rule_index.rules_for(vegetable_id),
    )
