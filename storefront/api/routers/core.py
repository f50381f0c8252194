from fastapi import APIRouter

# IMPORT LOGGER
from storefront.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Global/System"])

@router.get("/")
async def root():
    """Root endpoint for a general check."""
    logger.info("Root endpoint accessed.")
    return {"message": "Storefront API is running! Access docs at /docs or use /health."}

@router.get("/health")
async def health_check():
    """Health check endpoint, used by deployments and monitoring."""
    logger.debug("Health check requested.")
    return {"status": "ok", "service": "storefront"}
