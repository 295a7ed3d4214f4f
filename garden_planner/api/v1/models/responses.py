"""
API response models using Pydantic.
"""
from typing import List

from pydantic import ConfigDict, Field

from garden_planner.domain.models import CamelModel, CompanionRule, Vegetable


class VegetableListResponse(CamelModel):
    """Response model for the vegetable catalog endpoint."""
    count: int = Field(
        description="Number of vegetables in the catalog"
    )
    vegetables: List[Vegetable] = Field(
        description="Vegetable reference records"
    )


class CompanionsResponse(CamelModel):
    """Response model for the companions endpoint."""
    vegetable_id: str = Field(
        description="Vegetable the rules involve"
    )
    companions: List[CompanionRule] = Field(
        description="Companion rules involving the vegetable"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "vegetableId": "tomato",
                "companions": [
                    {
                        "id": "basil-tomato",
                        "vegetable1Id": "tomato",
                        "vegetable2Id": "basil",
                        "relationship": "beneficial",
                        "strength": 8,
                        "reason": "Basil repels whiteflies and aphids",
                        "distance": {"maxDistance": 50},
                    }
                ]
            }
        }
    )
