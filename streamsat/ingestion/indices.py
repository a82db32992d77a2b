"""
Module `ingestion.indices` provides generic spectral index computation
by loading formulas from `resources/index_formulas.json`.

Normalized-difference formulas are built with ``ee.Image.normalizedDifference``;
anything else is evaluated through ``ee.Image.expression``.
"""

import json
import os
from pathlib import Path
from typing import Iterable

from ee import Image

_DEFAULT_FORMULA_PATH = (
    Path(__file__).resolve().parent.parent / "resources" / "index_formulas.json"
)
_FORMULA_PATH = Path(os.getenv("STREAMSAT_INDEX_FORMULAS", _DEFAULT_FORMULA_PATH))
with open(_FORMULA_PATH, "r", encoding="utf-8") as _f:
    INDEX_REGISTRY = json.load(_f)

NORMALIZED_DIFFERENCE = "normalized_difference"


def _formula(index: str) -> dict:
    key = index.lower()
    if key not in INDEX_REGISTRY:
        raise ValueError(
            f"Index '{index}' not supported. Choose from: {list(INDEX_REGISTRY)}"
        )
    return INDEX_REGISTRY[key]


def required_aliases(indices: Iterable[str]) -> list[str]:
    """Return the band aliases needed to compute *indices*, first-seen order."""
    aliases: list[str] = []
    for index in indices:
        for alias in _formula(index)["bands"]:
            if alias.lower() not in aliases:
                aliases.append(alias.lower())
    return aliases


def compute_index(img: Image, index: str) -> Image:
    """
    Compute a named spectral index on the given EE Image.

    Args:
        img: ee.Image with bands already renamed to standard aliases (lowercase).
        index: one of the keys in INDEX_REGISTRY (case-insensitive).

    Returns:
        ee.Image of the computed index band, named by the lowercase index key.
    """
    key = index.lower()
    formula = _formula(key)
    bands = [b.lower() for b in formula["bands"]]

    if formula.get("type") == NORMALIZED_DIFFERENCE:
        # (A - B) / (A + B) with A, B in registry order
        return img.normalizedDifference(bands).rename(key)

    token_map = {}
    for alias in bands:
        token_map[alias.upper()] = img.select(alias)
    for param_key, param_val in formula.get("params", {}).items():
        token_map[param_key.upper()] = param_val
    return img.expression(formula["expr"], token_map).rename(key)
