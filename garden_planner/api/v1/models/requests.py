"""
API request models using Pydantic.
"""
from typing import List

from pydantic import ConfigDict, Field

from garden_planner.domain.models import CamelModel, Garden, GardenDimensions, SelectedVegetable


class OptimizeLayoutRequest(CamelModel):
    """Request body of the layout optimization endpoint."""
    dimensions: GardenDimensions = Field(
        description="Garden width and length in cm"
    )
    selected_vegetables: List[SelectedVegetable] = Field(
        min_length=1,
        description="Vegetables to place, with optional quantity and priority (1-10)"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "dimensions": {"width": 400, "length": 600},
                "selectedVegetables": [
                    {"vegetableId": "tomato", "priority": 8},
                    {"vegetableId": "basil", "priority": 5},
                    {"vegetableId": "carrot"},
                ]
            }
        }
    )

    def to_garden(self) -> Garden:
        return Garden(dimensions=self.dimensions, selected_vegetables=self.selected_vegetables)
