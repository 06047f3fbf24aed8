import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.core.config import FRONTEND_URL, FRONTEND_URL_PROD, LOG_LEVEL

# Import routers
from app.routes.sessions import router as sessions_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# -------------------------------------------------
# Rate Limiter Setup
# -------------------------------------------------
limiter = Limiter(key_func=get_remote_address)

# -------------------------------------------------
# Create FastAPI app
# -------------------------------------------------
app = FastAPI(
    title="Content Engine Backend",
    version="1.0.0"
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# -------------------------------------------------
# CORS settings
# -------------------------------------------------
allowed_origins = [origin for origin in (FRONTEND_URL, FRONTEND_URL_PROD) if origin]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type"],
)

# -------------------------------------------------
# Register Routers
# -------------------------------------------------
# Session flow: context -> product -> topics/article
app.include_router(sessions_router)

# -------------------------------------------------
# Health Check
# -------------------------------------------------
@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Content Engine Backend is running!"
    }
