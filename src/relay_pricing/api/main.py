from relay_pricing.config.logging import configure_structlog
from relay_pricing.config.settings import get_settings

# Logging must be configured before the first logger is created
_settings = get_settings()
configure_structlog(log_level=_settings.log_level, json_logs=_settings.json_logs)

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay_pricing import __version__
from relay_pricing.api.pricing_api import router as pricing_router
from relay_pricing.api.state import calculator, tier_table

logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Relay Pricing API",
    description="Volume pricing, proration and checkout totals for Relay subscriptions",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(_settings.cors_origins),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include pricing API
app.include_router(pricing_router)

logger.info("pricing_api_ready", tiers=len(tier_table), cache_size=calculator.cache_size)


@app.get("/")
async def root():
    return {"status": "online", "message": "Relay Pricing API Active"}


@app.get("/system/status")
async def get_status():
    cache = calculator.cache_info()
    return {
        "engine_active": True,
        "tier_count": len(tier_table),
        "tier_source": str(_settings.pricing_tiers_csv),
        "tier_source_exists": _settings.pricing_tiers_csv.exists(),
        "max_asset_count": calculator.max_asset_count,
        "quote_cache": cache._asdict() if cache else None,
    }
