# main.py
# Entry point FastAPI application that exposes:
#  - the bot endpoint (/api/messages) the channel adapter posts activities to
#  - a profile lookup helper (/api/profiles/...)
#  - a health check (/healthz)
#
# Run with: uvicorn main:app --reload
# Settings come from the environment (or a .env file), see bot/settings.py.

import logging

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI

from bot.settings import LOG_LEVEL, STORAGE_BACKEND, DB_URL
from db import init_db
from debug_http import log_requests
from observability import init_otel

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("main")

# Import the bot API router (builds the bot and its storage on import)
from bot.api import router as bot_router

APP_TITLE = "Profile Bot"

app = FastAPI(title=APP_TITLE)
app.include_router(bot_router, prefix="/api")
app.middleware("http")(log_requests)


@app.on_event("startup")
def _startup():
    """
    Create state tables and (optionally) tracing on app startup.
    """
    init_db()
    traced = init_otel()
    logger.info("[BOOT] storage=%s db=%s otel=%s", STORAGE_BACKEND, DB_URL, traced)


@app.get("/healthz")
def health():
    """
    Simple health-check endpoint for probes.
    """
    return {"ok": True}
