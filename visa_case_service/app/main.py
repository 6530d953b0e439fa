# FastAPI Application Entry Point
from fastapi import FastAPI

# Configuration and Observability
from visa_case_service.app.config import settings
from visa_case_service.app.observability import setup_opentelemetry, logger

# Initialize OpenTelemetry
setup_opentelemetry(service_name=settings.SERVICE_NAME_API)

# Import instrumentors after OTel SDK is initialized
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor

# Database connection
from visa_case_service.infrastructure.database.connection import (
    close_mongo_connection,
    connect_to_mongo,
    ensure_indexes,
)

# API Routers
from visa_case_service.app.api.v1.endpoints import health as health_router
from visa_case_service.app.api.v1.endpoints import alerts as alerts_router
from visa_case_service.app.api.v1.endpoints import visa_cases as visa_cases_router
from visa_case_service.app.api.v1.endpoints import documents as documents_router
from visa_case_service.app.api.v1.endpoints import reports as reports_router

# --- FastAPI Application Instance ---
app = FastAPI(
    title="Visa Case Service",
    description="Tracks visa cases through their lifecycle with documents, checklists, reminders and alerts.",
    version="0.1.0"
)


# --- Event Handlers for DB Connection ---
@app.on_event("startup")
async def startup_event():
    logger.info("FastAPI application startup...")
    # Listeners attach to clients created after this call.
    PymongoInstrumentor().instrument()
    logger.info("PyMongo instrumentation complete.")
    try:
        db = await connect_to_mongo(app.state)
        await ensure_indexes(db)
        logger.info("MongoDB connection established and indexes ensured.")
    except ConnectionError as e:
        # Requests fail through get_db until the database is reachable.
        logger.error(f"Failed during startup: {e}", exc_info=True)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("FastAPI application shutdown...")
    close_mongo_connection(app.state)


FastAPIInstrumentor.instrument_app(app)
logger.info("FastAPI instrumentation complete.")

# Include API Routers. Alerts go before visa cases so the fixed /visa-cases/alerts
# and /visa-cases/reminders/sweep paths win over /visa-cases/{case_id}.
app.include_router(health_router.router)
app.include_router(alerts_router.router, prefix="/api/v1")
app.include_router(visa_cases_router.router, prefix="/api/v1")
app.include_router(documents_router.router, prefix="/api/v1")
app.include_router(reports_router.router, prefix="/api/v1")

logger.info("API routers included. Application setup complete.")

# To run: uvicorn visa_case_service.app.main:app --reload --port 8000
