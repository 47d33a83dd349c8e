from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS, DEBUG, LOG_LEVEL
from .db import init_db
from .routers import calculations, export, export_xlsx, game_data, transfer, warbands

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(debug=DEBUG, title="Space Weirdos Warband Builder")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event() -> None:
    init_db()
    logger.info("Application started")


@app.get("/api/health")
def health():
    return {"status": "ok"}


app.include_router(transfer.router)
app.include_router(export_xlsx.router)
app.include_router(warbands.router)
app.include_router(calculations.router)
app.include_router(game_data.router)
app.include_router(export.router)
