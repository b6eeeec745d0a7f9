from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from sqlmodel import Session
import time
import structlog

from app.db import get_session, init_db
from app.routers import summaries as summaries_router
from app.services.logging import configure_logging, log_api_request
from app.services.monitoring import health_checker, get_metrics, REQUEST_COUNT, REQUEST_DURATION
from app.middleware.rate_limit import limiter, rate_limit_exceeded_handler

configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="StudyLens",
    description="Study summaries with key phrases anchored to the source text",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


def _endpoint_label(request: Request) -> str:
    # Route templates keep summary ids out of metric labels.
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


@app.middleware("http")
async def observe_requests(request: Request, call_next):
    started = time.perf_counter()
    log_api_request(request)

    try:
        response = await call_next(request)
    except Exception as e:
        log_api_request(request, duration=time.perf_counter() - started, error=e)
        raise

    elapsed = time.perf_counter() - started
    endpoint = _endpoint_label(request)
    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
    REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(elapsed)
    log_api_request(request, response, duration=elapsed)
    return response


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
def health_check(session: Session = Depends(get_session)):
    return health_checker.get_health_status(session)


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Startup -----------------
@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("startup_complete", routes=len(app.routes))


# ----------------- Routers -----------------
app.include_router(summaries_router.router)
