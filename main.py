import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dex_ticker.api import router
from dex_ticker.config import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="DEX Ticker Indexer",
    description="Per-block swap volume, price and rolling 24h volume for AMM pools",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(router, prefix="")

@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "name": "DEX Ticker Indexer",
        "version": "1.0.0",
        "networks": settings.active_networks,
        "status": "healthy"
    }

@app.get("/health")
async def health():
    """Detailed health check"""
    from dex_ticker.services import ticker_service

    network_status = {}
    for network in settings.active_networks:
        latest_block = ticker_service.get_latest_block(network)
        network_status[network] = {
            "latest_block": latest_block.block_number if latest_block else None,
            "latest_timestamp": latest_block.timestamp if latest_block else None,
            "rpc_configured": bool(settings.get_rpc_url(network))
        }

    return {
        "status": "healthy",
        "networks": network_status
    }

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower()
    )
