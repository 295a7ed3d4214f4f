"""
Catalog source constants.

This module contains the document names and endpoint paths of the vegetable
catalog. Centralizing these values makes it easy to move the catalog between
the bundled files, a local directory and a remote server.
"""
from pathlib import Path


BUNDLED_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
"""Catalog shipped with the package."""


class CatalogDocuments:
    """Catalog document names and their top-level keys."""

    VEGETABLES_FILE = "vegetables.json"
    RULES_FILE = "companion_rules.json"

    VEGETABLES_KEY = "vegetables"
    RULES_KEY = "rules"


class CatalogEndpoints:
    """Remote catalog endpoint paths, relative to catalog_base_url."""

    VEGETABLES = f"/{CatalogDocuments.VEGETABLES_FILE}"
    RULES = f"/{CatalogDocuments.RULES_FILE}"


class CatalogConstants:
    """General catalog constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"

    # Timeouts (in seconds)
    DEFAULT_TIMEOUT = 30.0

    # Guide import defaults
    DEFAULT_GUIDE_SPACING = 30
    FRIEND_STRENGTH = 5
    FRIEND_MAX_DISTANCE = 50.0
    ENEMY_STRENGTH = -5
    ENEMY_MIN_DISTANCE = 80.0
