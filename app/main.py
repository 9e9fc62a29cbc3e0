# app/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.core.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

# every model has to be imported so create_all knows about its table
from app.db.base_class import Base  # noqa: E402
from app.db.session import engine  # noqa: E402
from app.models.identity import Identity, OneTimeCode, RevokedToken  # noqa: E402,F401
from app.models.profile import Profile  # noqa: E402,F401
from app.models.post import Post  # noqa: E402,F401
from app.models.friendship import Friendship  # noqa: E402,F401

from app.common.deps import LoginRequired  # noqa: E402
from app.common.errors import SocialNetError  # noqa: E402
from app.common.limiter import limiter  # noqa: E402
from app.routers import auth, friendships, pages, posts, profiles  # noqa: E402

# create missing tables on startup
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.APP_NAME, debug=not settings.is_production)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(SocialNetError)
async def socialnet_error_handler(request: Request, exc: SocialNetError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse("/auth", status_code=303)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET_KEY,
    session_cookie="socialnet_session",
    same_site="lax",
    https_only=settings.is_production,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API
app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(posts.router, prefix="/api/v1/posts", tags=["posts"])
app.include_router(profiles.router, prefix="/api/v1/profiles", tags=["profiles"])
app.include_router(friendships.router, prefix="/api/v1/friendships", tags=["friendships"])

# pages: /auth, /, /profile
app.include_router(pages.router, tags=["pages"])


@app.get("/health")
@limiter.exempt
def health():
    return {"status": "healthy"}
