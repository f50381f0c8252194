from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
from dotenv import load_dotenv

# SETUP LOGGING
from .utils.logging_config import setup_logging, get_logger

load_dotenv()

# Initialize logging configuration immediately
setup_logging()
logger = get_logger(__name__)

from .api.db.sessions import engine
from .api.db.models import Base
from .api.errors import StorefrontError

Base.metadata.create_all(bind=engine)
logger.info("Database tables created (if they didn't exist).")

# Importing Routers
from .api.routers import core, auth, users, products, orders, admin

# FastAPI Setup and CORS
api = FastAPI(
    title="Storefront API (v1)",
    description="Users, catalog and transactional order placement."
)

env_origins = os.getenv("ALLOWED_ORIGINS")

if env_origins:
    ALLOWED_ORIGINS = env_origins.split(",")
else:
    ALLOWED_ORIGINS = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

logger.info(f"CORS Allowed Origins: {ALLOWED_ORIGINS}")

api.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@api.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )

# Register Routers
api.include_router(core.router)
api.include_router(auth.router)
api.include_router(users.router)
api.include_router(products.router)
api.include_router(orders.router)
api.include_router(admin.router)

logger.info("FastAPI startup complete. All routers registered.")
