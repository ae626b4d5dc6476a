"""
External product registry connectors.
Open Food Facts, openFDA NDC, CosIng (ingredient check), GS1 barcode format, NAFDAC.
"""
from .base import SourceAdapter
from .open_food_facts import OpenFoodFactsAdapter, search_products_quick
from .fda_drugs import FDADrugAdapter
from .cosmetics import CosmeticsAdapter
from .gs1_barcode import GS1BarcodeAdapter, validate_barcode
from .nafdac import NAFDACAdapter

__all__ = [
    "SourceAdapter",
    "OpenFoodFactsAdapter",
    "search_products_quick",
    "FDADrugAdapter",
    "CosmeticsAdapter",
    "GS1BarcodeAdapter",
    "validate_barcode",
    "NAFDACAdapter",
]
