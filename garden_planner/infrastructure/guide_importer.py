"""
Infrastructure layer: Import of gardening-guide companion tables.

A guide lists, per vegetable, its friends, its enemies and its spacing. The
importer turns it into catalog records:
- One vegetable per guide entry (30 cm spacing when the guide is silent)
- One rule per unordered pair; friends are beneficial, enemies antagonistic
- The first rule seen for a pair wins, except for forced antagonist pairs
"""
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional
import json
import logging
import re

from garden_planner.domain.models import (
    CompanionDistance,
    CompanionRule,
    Spacing,
    Vegetable,
)
from garden_planner.infrastructure.catalog_client import VegetableCatalog
from garden_planner.infrastructure.catalog_constants import CatalogConstants, CatalogDocuments

logger = logging.getLogger(__name__)

FRIEND_REASON = "Recommended pairing in the gardening guide"
FRIEND_BASIS = "Traditional companion planting"
ENEMY_REASON = "Incompatible according to the gardening guide"

DEFAULT_FORCED_ANTAGONISTS: frozenset = frozenset({frozenset({"potato", "zucchini"})})
"""Pairs kept antagonistic even when the guide also lists them as friends."""


def normalize_name(name: str) -> str:
    """Lower-case a guide name and drop parentheses and question marks."""
    return re.sub(r"[()?]", "", name.lower()).strip()


def slugify(name: str) -> str:
    slug = re.sub(r"\s+", "-", name)
    return re.sub(r"[^a-z0-9-]", "", slug)


def resolve_id(name: str, id_aliases: Mapping[str, str]) -> str:
    """
    Map a guide name to a vegetable id.

    Tries the raw lower-cased name, the cleaned name, then its singular
    form against the alias table before falling back to a slug.
    """
    raw = name.lower().strip()
    if raw in id_aliases:
        return id_aliases[raw]

    clean = normalize_name(name)
    if clean in id_aliases:
        return id_aliases[clean]

    singular = clean[:-1] if clean.endswith("s") else clean
    if singular in id_aliases:
        return id_aliases[singular]

    logger.warning(f"No id found for '{name}', using slug")
    return slugify(clean)


def _parse_spacing(value: Any) -> float:
    try:
        spacing = float(value)
    except (TypeError, ValueError):
        return CatalogConstants.DEFAULT_GUIDE_SPACING
    return spacing if spacing > 0 else CatalogConstants.DEFAULT_GUIDE_SPACING


def _pair_key(vegetable1_id: str, vegetable2_id: str) -> str:
    return "-".join(sorted((vegetable1_id, vegetable2_id)))


def build_catalog_from_guide(
    entries: Iterable[Dict[str, Any]],
    id_aliases: Optional[Mapping[str, str]] = None,
    forced_antagonists: Iterable[Iterable[str]] = DEFAULT_FORCED_ANTAGONISTS,
) -> VegetableCatalog:
    """
    Build a catalog from gardening-guide entries.

    Args:
        entries: Guide entries with name, friends, enemies and
            spacing.between_rows / spacing.between_plants
        id_aliases: Guide name (lower-case) to vegetable id
        forced_antagonists: Pairs whose enemy rule replaces any earlier rule

    Returns:
        VegetableCatalog with one vegetable per entry
    """
    id_aliases = id_aliases or {}
    forced = {frozenset(pair) for pair in forced_antagonists}
    entries = list(entries)

    vegetables: Dict[str, Vegetable] = {}
    rules: Dict[str, CompanionRule] = {}

    for entry in entries:
        vegetable_id = resolve_id(entry["name"], id_aliases)
        spacing = entry.get("spacing") or {}
        vegetables[vegetable_id] = Vegetable(
            id=vegetable_id,
            name=entry["name"],
            spacing=Spacing(
                row_spacing=_parse_spacing(spacing.get("between_rows")),
                plant_spacing=_parse_spacing(spacing.get("between_plants")),
            ),
        )

    for entry in entries:
        vegetable1_id = resolve_id(entry["name"], id_aliases)

        for friend in entry.get("friends", []):
            if not normalize_name(friend):
                continue
            vegetable2_id = resolve_id(friend, id_aliases)
            if vegetable2_id == vegetable1_id:
                continue

            key = _pair_key(vegetable1_id, vegetable2_id)
            if key in rules:
                continue

            rules[key] = CompanionRule(
                id=key,
                vegetable1_id=vegetable1_id,
                vegetable2_id=vegetable2_id,
                relationship="beneficial",
                strength=CatalogConstants.FRIEND_STRENGTH,
                reason=FRIEND_REASON,
                scientific_basis=FRIEND_BASIS,
                distance=CompanionDistance(max_distance=CatalogConstants.FRIEND_MAX_DISTANCE),
            )

        for enemy in entry.get("enemies", []):
            if not normalize_name(enemy):
                continue
            vegetable2_id = resolve_id(enemy, id_aliases)
            if vegetable2_id == vegetable1_id:
                continue

            key = _pair_key(vegetable1_id, vegetable2_id)
            if key in rules and frozenset({vegetable1_id, vegetable2_id}) not in forced:
                continue

            rules.pop(key, None)
            rules[key] = CompanionRule(
                id=key,
                vegetable1_id=vegetable1_id,
                vegetable2_id=vegetable2_id,
                relationship="antagonistic",
                strength=CatalogConstants.ENEMY_STRENGTH,
                reason=ENEMY_REASON,
                distance=CompanionDistance(min_distance=CatalogConstants.ENEMY_MIN_DISTANCE),
            )

    logger.info(f"Imported {len(vegetables)} vegetables and {len(rules)} rules from guide")
    return VegetableCatalog(vegetables=list(vegetables.values()), rules=list(rules.values()))


def export_catalog(catalog: VegetableCatalog, directory: Path) -> List[Path]:
    """
    Write a catalog as the two JSON documents read by CatalogClient.

    Args:
        catalog: Catalog to write
        directory: Target directory (created if missing)

    Returns:
        Paths of the written files
    """
    directory.mkdir(parents=True, exist_ok=True)

    vegetables_path = directory / CatalogDocuments.VEGETABLES_FILE
    rules_path = directory / CatalogDocuments.RULES_FILE

    vegetables_doc = {
        CatalogDocuments.VEGETABLES_KEY: [
            v.model_dump(by_alias=True, exclude_none=True) for v in catalog.vegetables
        ]
    }
    rules_doc = {
        CatalogDocuments.RULES_KEY: [
            r.model_dump(by_alias=True, exclude_none=True) for r in catalog.rules
        ]
    }

    vegetables_path.write_text(json.dumps(vegetables_doc, indent=2, ensure_ascii=False), encoding="utf-8")
    rules_path.write_text(json.dumps(rules_doc, indent=2, ensure_ascii=False), encoding="utf-8")

    logger.info(f"Wrote {len(catalog.vegetables)} vegetables and {len(catalog.rules)} rules to {directory}")
    return [vegetables_path, rules_path]
