# tradepost/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from tradepost.config import settings
from tradepost.database import Base, engine
from tradepost.exceptions import MarketplaceError, Unavailable
from tradepost.api import admin, conversation, message, notification, report

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

# Initialize FastAPI app
app = FastAPI(title="Tradepost Messaging & Moderation API")

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routers
app.include_router(conversation.router)  # /conversations/*
app.include_router(message.router)       # /messages/*
app.include_router(report.router)        # /reports/*
app.include_router(admin.router)         # /admin/reports/*
app.include_router(notification.router)  # /notifications/*


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    logger.error("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
    error = Unavailable()
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "message": "Tradepost API is running",
        "version": "1.0.0",
    }
