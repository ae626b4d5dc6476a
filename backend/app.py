"""
Product verification FastAPI application.

Endpoints:
    GET  /                          Health check
    POST /verify                    Aggregated verification (internal catalog + registries)
    POST /verify/internal           Internal catalog verification only
    POST /validate/external         External registry validation only
    POST /validate/enhanced         External validation with risk factors
    POST /search                    Enhanced search (internal + external)
    GET  /products/similar          Similar products for a name
    GET  /barcode/{barcode}/validate  GS1 barcode format check
    POST /functions/nafdac-scraper  NAFDAC Green Book lookup (cached)
    GET  /settings/validation       Current registry settings
    PUT  /settings/validation       Update registry settings
"""
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

# Load env vars
load_dotenv(Path(__file__).parent / ".env")

from core.config import log_config
from core.db import get_supabase_client
from core.cache.result_cache import build_default_cache
from core.catalog import InternalCatalog, SearchFilters, verify_product, get_similar_products
from core.external_apis import NAFDACAdapter, validate_barcode
from core.nafdac import NAFDACLookupService, error_response
from core.search import EnhancedSearchService
from core.settings import SettingsStore, ValidationSettings
from core.validation import Aggregator, ExternalValidator, ValidationLogSink, default_adapters, get_enhanced_validation

# Logger
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize App
app = FastAPI(title="Product Verification API")

log_config()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@dataclass
class Services:
    validator: ExternalValidator
    aggregator: Aggregator
    search: EnhancedSearchService


supabase_client = get_supabase_client()
catalog = InternalCatalog(supabase_client)
settings_store = SettingsStore()
nafdac_cache = build_default_cache("nafdac")
aggregate_cache = build_default_cache("aggregate")
nafdac_lookup = NAFDACLookupService(cache=build_default_cache("nafdac-scrape"))
log_sink = ValidationLogSink(supabase_client)


def build_services(settings: ValidationSettings) -> Services:
    nafdac = NAFDACAdapter(settings, cache=nafdac_cache)
    validator = ExternalValidator(settings, adapters=default_adapters(settings, nafdac=nafdac))
    return Services(
        validator=validator,
        aggregator=Aggregator(catalog, validator, settings, cache=aggregate_cache, log_sink=log_sink),
        search=EnhancedSearchService(catalog, settings, nafdac=nafdac),
    )


services = build_services(settings_store.get())


# --- Request Models ---
class VerifyRequest(BaseModel):
    product_name: str
    barcode: Optional[str] = None
    category: Optional[str] = None
    ingredients: Optional[List[str]] = None
    user_id: Optional[str] = None


class InternalVerifyRequest(BaseModel):
    product_name: str
    user_id: Optional[str] = None


class EnhancedValidationRequest(BaseModel):
    product_name: str
    barcode: Optional[str] = None


class SearchRequest(BaseModel):
    query: str
    filters: Optional[Dict[str, Any]] = None
    limit: int = 10


class NAFDACSearchRequest(BaseModel):
    searchQuery: Optional[str] = None
    limit: int = 5


class SettingsUpdate(BaseModel):
    enabled: Optional[Dict[str, bool]] = None
    confidence_weights: Optional[Dict[str, float]] = None
    adapter_timeout_seconds: Optional[float] = None
    cache_ttl_seconds: Optional[int] = None
    nafdac_cache_ttl_seconds: Optional[int] = None


# --- Endpoints ---

@app.get("/")
def health_check():
    return {"status": "ok", "service": "Product Verification"}


@app.post("/verify")
async def verify(request: VerifyRequest):
    """Aggregated verification. Always answers with a result object (system errors map to high risk)."""
    logger.info("Verify request product=%s category=%s", request.product_name, request.category)
    result = await services.aggregator.aggregate(
        request.product_name,
        barcode=request.barcode,
        category=request.category,
        ingredients=request.ingredients,
        user_id=request.user_id,
    )
    return result.to_dict()


@app.post("/verify/internal")
async def verify_internal(request: InternalVerifyRequest):
    return await asyncio.to_thread(verify_product, catalog, request.product_name, request.user_id)


@app.post("/validate/external")
async def validate_external(request: VerifyRequest):
    result = await services.validator.validate(
        request.product_name,
        barcode=request.barcode,
        category=request.category,
        ingredients=request.ingredients,
    )
    return result.to_dict()


@app.post("/validate/enhanced")
async def validate_enhanced(request: EnhancedValidationRequest):
    return await get_enhanced_validation(services.validator, request.product_name, request.barcode)


@app.post("/search")
async def search(request: SearchRequest):
    logger.info("Search request query=%s filters=%s", request.query, request.filters)
    filters = SearchFilters.from_dict(request.filters)
    return await services.search.search(request.query, filters, request.limit)


@app.get("/products/similar")
async def similar_products(name: str, category: Optional[str] = None):
    try:
        filters = SearchFilters(category=category)
        products = await asyncio.to_thread(get_similar_products, catalog, name, filters)
        return {"products": products, "count": len(products)}
    except Exception as e:
        logger.error("Similar products failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/barcode/{barcode}/validate")
def barcode_validate(barcode: str):
    return {"barcode": barcode, "valid": validate_barcode(barcode)}


@app.post("/functions/nafdac-scraper")
async def nafdac_scraper(request: NAFDACSearchRequest):
    if not request.searchQuery or not request.searchQuery.strip():
        return JSONResponse(status_code=400, content={"error": "Search query is required"})
    try:
        return await asyncio.to_thread(nafdac_lookup.lookup, request.searchQuery, request.limit)
    except Exception as e:
        logger.error("NAFDAC scraper error: %s", e, exc_info=True)
        return JSONResponse(status_code=500, content=error_response())


@app.get("/settings/validation")
def get_validation_settings():
    return settings_store.get().to_dict()


@app.put("/settings/validation")
def update_validation_settings(body: SettingsUpdate):
    global services
    try:
        updated = settings_store.update(**body.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    services = build_services(updated)
    return updated.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
