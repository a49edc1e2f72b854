"""
Mailhook API
FastAPI application that receives inbound email webhooks and normalizes them.
"""

import logging
import os
from typing import List

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mailhook.routers import email_intake

load_dotenv()

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Mailhook API",
    description="Inbound email webhook normalization",
    version="0.1.0",
)


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Always includes http://localhost:3000. Additional origins are read from
    the CORS_ORIGINS environment variable as a comma-separated list, e.g.:
        CORS_ORIGINS=https://mail.example.com,https://preview.example.com

    Duplicates are removed while preserving order.
    """
    always_included = ["http://localhost:3000"]

    extra_origins: List[str] = []
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if cors_env:
        extra_origins = [o.strip() for o in cors_env.split(",") if o.strip()]

    # Deduplicate while preserving order
    seen: set = set()
    origins: List[str] = []
    for origin in always_included + extra_origins:
        if origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(email_intake.router, prefix="/api/email-intake", tags=["email-intake"])


@app.on_event("startup")
async def log_provider() -> None:
    logger.info(
        "Mailhook accepting inbound webhooks for provider %s",
        os.getenv("EMAIL_PROVIDER", "mailgun"),
    )


@app.get("/")
async def root():
    return {"message": "Mailhook API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}
