"""
FastAPI app entry point aggregating per-area routers under dbadmin/routes.
Keep as `uvicorn dbadmin.api:app`.
"""
from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import ensure_data_dir
from .logs import setup_logging


app = FastAPI(title="sqlite-admin-api", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    setup_logging(os.environ.get("DBADMIN_LOG_LEVEL", "INFO"))
    ensure_data_dir()


# Include routers (split by area)
from .routes import base as base_routes
from .routes import databases as databases_routes
from .routes import tables as tables_routes
from .routes import insights as insights_routes

app.include_router(base_routes.router)
app.include_router(databases_routes.router)
app.include_router(tables_routes.router)
app.include_router(insights_routes.router)
