from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hookmap.config import settings
from hookmap.routers import graphs, health, session, usage
from hookmap.domain.errors import (
    LimitExceededError,
    NotFoundError,
    PersistenceError,
    UnauthorizedError,
    ValidationError,
)
from hookmap.application.event_handlers import register_event_handlers
from hookmap.dependencies import get_backend, get_usage_monitor, get_workspace

app = FastAPI(
    title="Hookmap Editor API",
    description="Editing, autosave and deploy engine for hookmap graphs",
    version=settings.VERSION,
)

# Register domain event handlers and start usage polling on startup
@app.on_event("startup")
async def startup_event():
    register_event_handlers()
    get_usage_monitor().start()

@app.on_event("shutdown")
async def shutdown_event():
    get_usage_monitor().stop()
    get_workspace().close_session()
    await get_backend().aclose()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain error handlers
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(LimitExceededError)
async def limit_exceeded_handler(request: Request, exc: LimitExceededError):
    return JSONResponse(status_code=402, content={"detail": str(exc)})


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(request: Request, exc: UnauthorizedError):
    return JSONResponse(status_code=401, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=502, content={"detail": str(exc), "backend_status": exc.status})

# Include routers
app.include_router(health.router, tags=["Health"])  # Health check endpoints first
app.include_router(graphs.router, tags=["Graphs"])
app.include_router(session.router, tags=["Session"])
app.include_router(usage.router, tags=["Usage"])

@app.get("/")
async def root():
    return {"message": "Welcome to the Hookmap Editor API. See /docs for API documentation"}
