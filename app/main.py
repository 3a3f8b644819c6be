import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ✅ Import All API Routes
from app.api.routes import admin, ai, auth, health, history, users, wallet
from app.core import config
from app.core.exceptions import CreditError
from app.core.logging_config import setup_logging, sanitize_log_data

setup_logging(log_level=config.LOG_LEVEL, log_dir=config.LOG_DIR if config.LOG_TO_FILE else None)
logger = logging.getLogger(__name__)


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="Hidn API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ============================================
# ✅ CREDIT ERRORS -> STRUCTURED JSON
# ============================================

@app.exception_handler(CreditError)
def credit_error_handler(request: Request, exc: CreditError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(wallet.router)
app.include_router(ai.router)
app.include_router(users.router)
app.include_router(history.router)
app.include_router(admin.router)
app.include_router(health.router)


@app.on_event("startup")
def on_startup():
    if config.RUN_MIGRATIONS:
        from app.db.migrate import run_migrations
        run_migrations()
    logger.info(
        "Hidn API started with %s",
        sanitize_log_data({
            "database_url": config.DATABASE_URL,
            "openai_api_key": config.OPENAI_API_KEY,
            "openai_model": config.OPENAI_MODEL,
            "daily_free_credits": config.DAILY_FREE_CREDITS,
            "config_cache_ttl_seconds": config.CONFIG_CACHE_TTL_SECONDS,
        }),
    )


@app.get("/")
def root():
    return {"status": "Hidn API running"}
