import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from matchboard.database import engine, init_db
from matchboard.db_schema_patch import ensure_bracket_columns, ensure_league_columns, ensure_match_columns
from matchboard.routes import brackets, events, leagues, matches, public

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Matchboard API"

app = FastAPI(title=APP_NAME)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(events.router, prefix="/api", tags=["events"])
app.include_router(brackets.router, prefix="/api", tags=["brackets"])
app.include_router(leagues.router, prefix="/api", tags=["leagues"])

# Admin match generation, scoring and finalize
app.include_router(matches.router, prefix="/api", tags=["matches"])

# Public read-only endpoints (no auth)
app.include_router(public.router, prefix="/api", tags=["public"])


@app.on_event("startup")
def on_startup():
    init_db()  # imports models and creates tables
    ensure_bracket_columns(engine)
    ensure_league_columns(engine)
    ensure_match_columns(engine)

    route_count = 0
    for r in app.routes:
        path = getattr(r, "path", None)
        if not path:
            continue
        methods = getattr(r, "methods", None)
        logger.debug("%-20s %s", ", ".join(sorted(methods)) if methods else "N/A", path)
        route_count += 1
    logger.info("%s started with %d routes", APP_NAME, route_count)


@app.get("/api/health")
def health_check():
    """Diagnostic endpoint to verify the API is up"""
    return {"app_name": APP_NAME, "status": "healthy"}
