import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import CORS_ORIGINS, LOG_LEVEL, LOG_JSON
from .logging_config import bind_request_context, clear_request_context, configure_logging, get_logger
from .services.database import create_db_and_tables
from .routers import auth, profiles, challenges, submissions, leaderboard, dashboard

configure_logging(level=LOG_LEVEL, json_format=LOG_JSON)
logger = get_logger(__name__)

app = FastAPI(title="AI Challenge Arena")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    bind_request_context(request_id, method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    finally:
        clear_request_context()
    response.headers["X-Request-ID"] = request_id
    return response

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("database_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"detail": str(exc)})

@app.get("/")
async def root():
    return {"message": "AI Challenge Arena"}

app.include_router(auth.router)
app.include_router(profiles.router)
app.include_router(challenges.router)
app.include_router(submissions.router)
app.include_router(leaderboard.router)
app.include_router(dashboard.router)

@app.on_event("startup")
def on_startup():
    create_db_and_tables()
    logger.info("startup_complete")
