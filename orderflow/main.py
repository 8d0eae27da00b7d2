"""
FastAPI Application Entry Point - Order Lifecycle Service
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from orderflow.api import admin_orders, checkout, health, orders, payments
from orderflow.config import settings
from orderflow.database import init_db
from orderflow.exceptions import OrderflowError
from orderflow.logging_config import setup_logging

logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Order Lifecycle Service",
    description="Orders, inventory reservation, payments and cancellations for the HVAC store",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(checkout.router)
app.include_router(orders.router)
app.include_router(payments.router)
app.include_router(admin_orders.router)

# Prometheus metrics
Instrumentator().instrument(app).expose(app)


@app.exception_handler(OrderflowError)
async def orderflow_error_handler(request: Request, exc: OrderflowError):
    logger.info(f"{request.method} {request.url.path} rejected: {exc.code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": "Internal server error"}
    )


@app.on_event("startup")
def startup_event():
    """Configure logging and initialize database on startup"""
    setup_logging(settings.SERVICE_NAME, settings.LOG_LEVEL, settings.LOG_FORMAT)
    logger.info(f"Starting {settings.SERVICE_NAME}...")
    init_db()
    logger.info("Database initialized")
    logger.info(f"Payment gateway: {settings.PAYMENT_GATEWAY_URL}")
    logger.info(f"{settings.SERVICE_NAME} is running on port {settings.SERVICE_PORT}")


@app.on_event("shutdown")
def shutdown_event():
    """Cleanup on shutdown"""
    logger.info(f"Shutting down {settings.SERVICE_NAME}...")
