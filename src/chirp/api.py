"""FastAPI application exposing account and tweet endpoints."""

from datetime import datetime
from typing import Annotated, Generator, List

import logging
from fastapi import Depends, FastAPI, Path, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import Counter, make_asgi_app
from pydantic import BaseModel, ConfigDict

from sqlalchemy.orm import Session

from .auth import AuthService
from .config import settings
from .database import SessionLocal, init_db
from .errors import ChirpError
from .services import MAX_SQL_INTEGER, FeedService


app = FastAPI(title=settings.api_title)
app.mount("/metrics", make_asgi_app())
init_db()

logger = logging.getLogger(__name__)

# Prometheus counter to track API requests by method, endpoint and status code
REQUEST_COUNTER = Counter(
    "api_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests and their outcomes while updating metrics."""
    logger.info("request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=request.url.path,
            status=str(response.status_code),
        ).inc()
        logger.info(
            "response %s %s status %s",
            request.method,
            request.url.path,
            response.status_code,
        )
        return response
    except Exception:
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=request.url.path,
            status="500",
        ).inc()
        logger.exception(
            "error handling %s %s", request.method, request.url.path
        )
        raise


@app.exception_handler(ChirpError)
async def chirp_error_handler(request: Request, exc: ChirpError):
    """Render domain errors with their status and a client-safe detail."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": "Malformed request"})


# Ids outside the SQL integer range are rejected as 400 before reaching the store.
UserId = Annotated[int, Path(ge=0, le=MAX_SQL_INTEGER)]


def get_db() -> Generator[Session, None, None]:
    """Provide a session scoped to a single request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class LoginRequest(BaseModel):
    """Request body for user login."""

    email: str | None = None
    password: str | None = None


class RegisterRequest(BaseModel):
    """Request body for registering a new user."""

    email: str | None = None
    password: str | None = None
    username: str | None = None
    name: str | None = None


class UserRead(BaseModel):
    """Account returned after login or registration; never includes the hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    username: str
    name: str
    role: str


class UserPublic(BaseModel):
    """Public profile of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str


class UserResponse(BaseModel):
    user: UserRead


class UserPublicResponse(BaseModel):
    user: UserPublic


class TweetRequest(BaseModel):
    """Request body for posting a tweet."""

    tweet: str | None = None


class TweetRead(BaseModel):
    """A tweet joined with its author."""

    id: int
    user_id: int
    tweet: str
    created: datetime
    username: str
    name: str


class TweetResponse(BaseModel):
    tweet: TweetRead


class TweetListResponse(BaseModel):
    tweets: List[TweetRead]


@app.post("/api/login", response_model=UserResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = AuthService(db).login(payload.email, payload.password)
    return UserResponse(user=UserRead.model_validate(user))


@app.post("/api/users", response_model=UserResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user = AuthService(db).register(
        payload.email, payload.password, payload.username, payload.name
    )
    return UserResponse(user=UserRead.model_validate(user))


@app.get("/api/users/{user_id}", response_model=UserPublicResponse)
def get_user(user_id: UserId, db: Session = Depends(get_db)):
    """Return the public profile of a user."""

    user = FeedService(db).get_user(user_id)
    return UserPublicResponse(user=UserPublic.model_validate(user))


@app.get("/api/users/{user_id}/tweets", response_model=TweetListResponse)
def get_user_tweets(user_id: UserId, db: Session = Depends(get_db)):
    """Return every tweet by the user, newest first."""

    return TweetListResponse(tweets=FeedService(db).get_user_feed(user_id))


@app.post("/api/users/{user_id}/tweets", response_model=TweetResponse)
def post_tweet(user_id: UserId, payload: TweetRequest, db: Session = Depends(get_db)):
    """Post a tweet on behalf of the user."""

    return TweetResponse(tweet=FeedService(db).post_tweet(user_id, payload.tweet))


@app.get("/api/tweets/search", response_model=TweetListResponse)
def search_tweets(
    keywords: str | None = None,
    limit: str | None = None,
    offset: str | None = None,
    db: Session = Depends(get_db),
):
    """Return tweets matching the keywords, newest first."""

    return TweetListResponse(
        tweets=FeedService(db).search_by_keyword(keywords, limit, offset)
    )


@app.get("/api/tweets/hash/{hashtag}", response_model=TweetListResponse)
def search_hashtag(
    hashtag: str,
    limit: str | None = None,
    offset: str | None = None,
    db: Session = Depends(get_db),
):
    """Return tweets tagged with ``#hashtag``, newest first."""

    return TweetListResponse(
        tweets=FeedService(db).search_by_hashtag(hashtag, limit, offset)
    )
