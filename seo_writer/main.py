import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from seo_writer.core.config import FRONTEND_URL, FRONTEND_URL_PROD, LOG_LEVEL

# Import routers
from seo_writer.routes.account import router as account_router
from seo_writer.routes.articles import router as articles_router
from seo_writer.routes.competitors import router as competitors_router
from seo_writer.routes.dashboard import router as dashboard_router
from seo_writer.routes.descriptions import router as descriptions_router
from seo_writer.routes.onboarding import router as onboarding_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# -------------------------------------------------
# Rate Limiter Setup
# -------------------------------------------------
limiter = Limiter(key_func=get_remote_address)

# -------------------------------------------------
# Create FastAPI app
# -------------------------------------------------
app = FastAPI(
    title="SEO Writer Backend",
    version="1.0.0"
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# -------------------------------------------------
# CORS settings
# -------------------------------------------------
allowed_origins = [
    FRONTEND_URL,
    FRONTEND_URL_PROD,
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)

# -------------------------------------------------
# Register Routers
# -------------------------------------------------
app.include_router(onboarding_router)
app.include_router(dashboard_router)
app.include_router(articles_router)
app.include_router(descriptions_router)
app.include_router(competitors_router)
app.include_router(account_router)


@app.get("/")
def root():
    return {"status": "ok", "message": "SEO Writer backend is running"}
