from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

from nhl_predictor.config import ALLOWED_ORIGINS, LOG_LEVEL, LOG_JSON, SCHEDULER_ENABLED
from nhl_predictor.db import init_db
from nhl_predictor.routers import health, nhl, predictions
from nhl_predictor.services.scheduler import prediction_scheduler
from nhl_predictor.utils.logging import setup_logging, request_logger

logger = setup_logging(level=LOG_LEVEL, json_format=LOG_JSON)

APP_NAME = "NHL Predictor"
APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if SCHEDULER_ENABLED:
        await prediction_scheduler.start()
    yield
    if SCHEDULER_ENABLED:
        await prediction_scheduler.stop()


app = FastAPI(
    title=APP_NAME,
    description="""
# NHL Predictor API

Win probabilities and expected scores for NHL matchups, built from season
team statistics, with stored predictions graded against final scores.

## Model

- Offense, defense and special-teams composites per team
- Home-ice boosts for the home side
- Logistic transform of the composite differential
- Expected score from the pace of both teams

Predictions never fail outright: a computation error returns a neutral
50/50 prediction flagged with `fallback: true`.
    """,
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Health", "description": "Health check endpoints"},
        {"name": "NHL", "description": "Teams, games and team stats"},
        {"name": "Predictions", "description": "Matchup predictions, outcomes and accuracy"}
    ]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
    expose_headers=["X-Process-Time"],
)

app.include_router(health.router)
app.include_router(nhl.router)
app.include_router(predictions.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = time.time() - start_time
    process_time_ms = process_time * 1000

    client_ip = request.headers.get("X-Forwarded-For", "").split(",")[0].strip() or (
        request.client.host if request.client else "unknown"
    )

    if process_time > 1.0:
        logger.warning(f"Slow request: {request.method} {request.url.path} took {process_time:.2f}s")

    request_logger.log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=process_time_ms,
        client_ip=client_ip
    )

    response.headers["X-Process-Time"] = str(round(process_time_ms, 2))

    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    client_ip = request.headers.get("X-Forwarded-For", "").split(",")[0].strip() or (
        request.client.host if request.client else "unknown"
    )

    request_logger.log_error(
        message=f"Unhandled exception: {type(exc).__name__}",
        exception=exc,
        path=request.url.path,
        client_ip=client_ip
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "An internal error occurred",
            "type": type(exc).__name__
        }
    )


@app.get("/", tags=["Health"])
def root():
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "redoc": "/redoc",
        "features": [
            "matchup_predictions",
            "result_reconciliation",
            "accuracy_tracking",
            "scheduled_refresh"
        ]
    }
