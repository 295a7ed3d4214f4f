"""
Domain service: Greedy constraint-satisfaction layout generation.

Packs rows top-to-bottom and segments left-to-right under hard space
constraints:
- Higher-priority vegetables are placed first, wider row spacing breaking ties
- Each vegetable opens full-width rows while vertical space remains
- Leftover quantity is packed into existing rows tall enough to hold it
- Whatever cannot be placed is dropped (no backtracking)
"""
import math
from typing import Iterable, Optional
import logging

from garden_planner.domain.models import (
    GardenDimensions,
    GardenLayout,
    PlantSegment,
    Row,
    SelectedVegetable,
    Vegetable,
)
from garden_planner.utils.spacing import calculate_required_width

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 5
"""Priority used for ordering selections that carry none."""


class LayoutGenerator:
    """
    Domain service producing a feasible initial layout.

    The result is best-effort: vegetables that do not fit are dropped
    silently and reported through unplaced_vegetables().
    """

    def __init__(
        self,
        dimensions: GardenDimensions,
        vegetables: Iterable[Vegetable],
        selected_vegetables: list[SelectedVegetable],
    ):
        """
        Initialize the generator.

        Args:
            dimensions: Garden width and length in cm
            vegetables: Vegetable catalog
            selected_vegetables: Selections with target quantity and priority
        """
        self.dimensions = dimensions
        self.vegetables = {v.id: v for v in vegetables}
        self.selected_vegetables = selected_vegetables

    def generate(self) -> Optional[GardenLayout]:
        """
        Generate an initial feasible layout.

        Returns:
            GardenLayout, or None if not a single row could be created
        """
        logger.info(f"Generating layout for {len(self.selected_vegetables)} selections "
                    f"in {self.dimensions.width:.0f}x{self.dimensions.length:.0f}cm")

        rows: list[Row] = []
        current_y = 0.0

        for selection in self._sorted_selections():
            vegetable = self.vegetables.get(selection.vegetable_id)
            if vegetable is None:
                logger.warning(f"Unknown vegetable '{selection.vegetable_id}', skipping")
                continue

            remaining = selection.quantity or 1
            row_height = vegetable.spacing.row_spacing

            while remaining > 0:
                if current_y + row_height > self.dimensions.length:
                    # No vertical space left: pack into existing rows
                    placed_some = False
                    while remaining > 0:
                        placed = self._place_in_existing_rows(rows, vegetable, remaining)
                        if placed == 0:
                            break
                        remaining -= placed
                        placed_some = True

                    if not placed_some or remaining > 0:
                        break
                    continue

                row = Row(id=f"row-{len(rows)}", y_position=current_y, height=row_height)
                placed = self._fill_row(row, vegetable, remaining)

                if placed == 0:
                    logger.warning(f"Row too narrow for a single {vegetable.id}")
                    break

                logger.debug(f"Added row at y={current_y:.0f} for {vegetable.id} ({placed} plants)")
                rows.append(row)
                current_y += row_height
                remaining -= placed

            if remaining > 0:
                logger.info(f"Dropped {remaining} {vegetable.id} that did not fit")

        if not rows:
            logger.warning("No row could be created")
            return None

        return GardenLayout(rows=rows)

    def _sorted_selections(self) -> list[SelectedVegetable]:
        """Selections by priority, then row spacing, both descending."""
        def sort_key(selection: SelectedVegetable) -> tuple[float, float]:
            vegetable = self.vegetables.get(selection.vegetable_id)
            row_spacing = vegetable.spacing.row_spacing if vegetable else 0.0
            return (-(selection.priority or DEFAULT_PRIORITY), -row_spacing)

        return sorted(self.selected_vegetables, key=sort_key)

    def _fill_row(self, row: Row, vegetable: Vegetable, desired_quantity: int) -> int:
        """
        Fill a new row with as many plants as fit across the garden width.

        Returns:
            Number of plants placed
        """
        available_width = self.dimensions.width
        max_plants = math.floor(available_width / vegetable.spacing.plant_spacing)
        if max_plants == 0:
            return 0

        plant_count = min(desired_quantity, max_plants)
        required_width = calculate_required_width(plant_count, vegetable)
        if required_width > available_width:
            return 0

        row.segments.append(PlantSegment(
            id=f"segment-{row.id}-{vegetable.id}",
            vegetable_id=vegetable.id,
            x_start=0.0,
            x_end=required_width,
            plant_count=plant_count,
        ))
        return plant_count

    def _place_in_existing_rows(
        self,
        rows: list[Row],
        vegetable: Vegetable,
        quantity: int,
    ) -> int:
        """
        Append a segment to the first existing row that can take some plants.

        Returns:
            Number of plants placed (0 if no row could accept any)
        """
        plant_spacing = vegetable.spacing.plant_spacing

        for row in rows:
            if row.height < vegetable.spacing.row_spacing:
                continue

            used_width = sum(segment.width for segment in row.segments)
            available_width = self.dimensions.width - used_width
            max_plants = math.floor(available_width / plant_spacing)
            if max_plants <= 0:
                continue

            plant_count = min(quantity, max_plants)
            required_width = calculate_required_width(plant_count, vegetable)
            if required_width > available_width:
                continue

            x_start = row.segments[-1].x_end if row.segments else 0.0
            row.segments.append(PlantSegment(
                id=f"segment-{row.id}-{vegetable.id}-{len(row.segments)}",
                vegetable_id=vegetable.id,
                x_start=x_start,
                x_end=x_start + required_width,
                plant_count=plant_count,
            ))
            return plant_count

        return 0

    def validate(self, layout: GardenLayout) -> bool:
        """
        Re-check a layout against the hard constraints.

        Rows must lie within the garden length, segments within the garden
        width, and segments of a row must not overlap.
        """
        for row in layout.rows:
            if row.y_position < 0 or row.y_position + row.height > self.dimensions.length:
                return False

            for i, segment in enumerate(row.segments):
                if segment.x_start < 0 or segment.x_end > self.dimensions.width:
                    return False

                for other in row.segments[i + 1:]:
                    if segment.x_start < other.x_end and segment.x_end > other.x_start:
                        return False

        return True

    def total_plants(self, layout: GardenLayout) -> int:
        return sum(segment.plant_count for row in layout.rows for segment in row.segments)

    def unplaced_vegetables(self, layout: GardenLayout) -> list[str]:
        """Selected vegetables with no segment in the layout."""
        placed = {segment.vegetable_id for row in layout.rows for segment in row.segments}
        return [
            selection.vegetable_id
            for selection in self.selected_vegetables
            if selection.vegetable_id not in placed
        ]
