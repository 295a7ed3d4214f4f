"""
Domain models for vegetables, companion rules and garden layouts.

These models represent the core domain entities and should be independent
of any infrastructure concerns (catalog loading, HTTP, etc.).
Attributes are snake_case; JSON uses camelCase to match the catalog files
and the UI that renders layouts.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


CompanionRelationship = Literal["beneficial", "helpful", "neutral", "avoid", "antagonistic"]
Direction = Literal["north", "south", "east", "west"]
WarningType = Literal["spacing_violation", "bad_companion", "insufficient_space", "low_utilisation"]
WarningSeverity = Literal["low", "medium", "high"]


class CamelModel(BaseModel):
    """Base model serialising to camelCase and accepting either naming."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(BaseModel):
    """Immutable reference record."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ============================================================
# Reference data
# ============================================================

class Spacing(FrozenCamelModel):
    """Spacing requirements of a vegetable, in cm."""
    row_spacing: float = Field(gt=0, description="cm between rows")
    plant_spacing: float = Field(gt=0, description="cm between plants in the same row")
    min_spacing: Optional[float] = None


class GrowthCharacteristics(FrozenCamelModel):
    height: float = 50
    width: float = 30
    depth: float = 30
    growth_rate: Literal["fast", "medium", "slow"] = "medium"


class Season(FrozenCamelModel):
    planting_months: List[int] = Field(default_factory=list)
    harvest_months: List[int] = Field(default_factory=list)
    days_to_maturity: Optional[int] = None


class NutritionalNeeds(FrozenCamelModel):
    nitrogen: Literal["low", "medium", "high"] = "medium"
    phosphorus: Literal["low", "medium", "high"] = "medium"
    potassium: Literal["low", "medium", "high"] = "medium"


class VisualProperties(FrozenCamelModel):
    color: str = "#81C784"
    icon_url: Optional[str] = None
    texture_url: Optional[str] = None


class Vegetable(FrozenCamelModel):
    """Vegetable reference record. Only spacing is used by the optimizer."""
    id: str
    name: str
    scientific_name: Optional[str] = None
    category: str = "other"
    spacing: Spacing
    growth_characteristics: GrowthCharacteristics = Field(default_factory=GrowthCharacteristics)
    season: Season = Field(default_factory=Season)
    nutritional_needs: NutritionalNeeds = Field(default_factory=NutritionalNeeds)
    visual_properties: VisualProperties = Field(default_factory=VisualProperties)


class CompanionDistance(FrozenCamelModel):
    min_distance: Optional[float] = Field(
        default=None, description="Required separation in cm for bad companions"
    )
    max_distance: Optional[float] = Field(
        default=None, description="Effective range in cm for good companions"
    )


class CompanionRule(FrozenCamelModel):
    """Relationship between an unordered pair of vegetables."""
    id: str
    vegetable1_id: str = Field(alias="vegetable1Id")
    vegetable2_id: str = Field(alias="vegetable2Id")
    relationship: CompanionRelationship
    strength: float = Field(ge=-10, le=10)
    reason: str = ""
    scientific_basis: Optional[str] = None
    distance: Optional[CompanionDistance] = None


# ============================================================
# Garden configuration
# ============================================================

class SelectedVegetable(CamelModel):
    vegetable_id: str
    quantity: Optional[int] = None
    priority: Optional[int] = Field(default=None, ge=1, le=10)


class GardenDimensions(CamelModel):
    width: float = Field(gt=0, description="Garden width in cm")
    length: float = Field(gt=0, description="Garden length in cm")


class Garden(CamelModel):
    dimensions: GardenDimensions
    selected_vegetables: List[SelectedVegetable] = Field(default_factory=list)


# ============================================================
# Layout
# ============================================================

class CompanionInfo(CamelModel):
    """Neighbor relationship summary shown in tooltips."""
    vegetable_id: str
    relationship: CompanionRelationship
    direction: Direction
    reason: str


class PlantSegment(CamelModel):
    """A contiguous run of one vegetable within a row."""
    id: str
    vegetable_id: str
    x_start: float
    x_end: float
    plant_count: int
    companions: List[CompanionInfo] = Field(default_factory=list)

    @property
    def width(self) -> float:
        return self.x_end - self.x_start


class Row(CamelModel):
    id: str
    y_position: float
    height: float
    segments: List[PlantSegment] = Field(default_factory=list)

    def clone(self) -> "Row":
        return self.model_copy(deep=True)


class LayoutMetrics(CamelModel):
    utilisation_rate: float = 0.0
    companion_score: float = 0.0
    spacing_score: float = 0.0
    diversity_score: float = 0.0


class GardenLayout(CamelModel):
    rows: List[Row] = Field(default_factory=list)
    score: float = 0.0
    metrics: LayoutMetrics = Field(default_factory=LayoutMetrics)

    def clone(self) -> "GardenLayout":
        return self.model_copy(deep=True)


class LayoutScore(CamelModel):
    """Result of scoring a layout."""
    score: float
    metrics: LayoutMetrics


# ============================================================
# Optimizer output
# ============================================================

class PlacementWarning(CamelModel):
    type: WarningType
    severity: WarningSeverity
    message: str
    affected_vegetables: List[str] = Field(default_factory=list)


class PlacementResult(CamelModel):
    success: bool
    layout: Optional[GardenLayout] = None
    warnings: List[PlacementWarning] = Field(default_factory=list)
    computation_time: float = Field(description="Wall-clock time in ms")
    iterations: Optional[int] = None
