"""Main FastAPI application for the Checklist Scheduler."""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.middleware.cors import add_cors_middleware
from app.db.init import init_db
from app.services.errors import ServiceError
from app.utils.logger import api_logger as logger
from app.utils.metrics import metrics_collector

# Create FastAPI application
app = FastAPI(
    title="Checklist Scheduler API",
    description="Recurring checklists with working-day aware scheduling, delegated work and support tickets",
    version="1.0.0",
)

# Add CORS middleware
add_cors_middleware(app)


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    try:
        init_db()
    except Exception as e:
        # Server keeps running so /health stays reachable
        logger.exception(
            "Database initialization failed; database operations may fail",
            error_type=type(e).__name__,
        )
        return
    logger.info("Application startup complete")


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Translate service-layer errors into JSON responses."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request rejected",
        path=request.url.path,
        method=request.method,
        code=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, "details": exc.details},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/metrics")
async def get_metrics():
    """Counters and timers since process start."""
    return metrics_collector.get_metrics()


@app.get("/")
async def root():
    """Root endpoint - API welcome message."""
    return {
        "title": "Checklist Scheduler API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# Import and include routers
from app.routers import tenants, checklists, delegations, tickets  # noqa: E402
app.include_router(tenants.router, prefix="/api")  # /api/tenants, /api/employees/{id}/leave
app.include_router(checklists.router, prefix="/api")  # /api/checklists, /api/employees/{id}/checklist-instances
app.include_router(delegations.router, prefix="/api")  # /api/delegations, /api/employees/{id}/tracking
app.include_router(tickets.router, prefix="/api")  # /api/tickets

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
