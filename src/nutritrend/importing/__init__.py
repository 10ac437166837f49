"""CSV import of logged nutrition from other apps."""

from __future__ import annotations

from nutritrend.importing.importer import (
    ImportSession,
    NutritionImportError,
    NutritionImporter,
)
from nutritrend.importing.macrofactor import MacroFactorParser, ParseResult
from nutritrend.importing.nutritionrx import NutritionRxParser

__all__ = [
    "ImportSession",
    "MacroFactorParser",
    "NutritionImportError",
    "NutritionImporter",
    "NutritionRxParser",
    "ParseResult",
]
