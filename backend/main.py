import logging
from functools import lru_cache
from typing import Any

from fastapi import Body, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
try:
    from backend.app.config import Settings
    from backend.app.errors import ApiError, StorageError
    from backend.app.gateway import ALLOWED_HEADERS
    from backend.app.services import ratings_api
    from backend.app.services.ratings_store import RatingsStore
    from backend.app.services.submission import submit_rating
except ModuleNotFoundError:
    from app.config import Settings
    from app.errors import ApiError, StorageError
    from app.gateway import ALLOWED_HEADERS
    from app.services import ratings_api
    from app.services.ratings_store import RatingsStore
    from app.services.submission import submit_rating


logger = logging.getLogger(__name__)


# ---------------------------
# App setup
# ---------------------------

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def get_ratings_store() -> RatingsStore:
    return RatingsStore.from_settings(get_settings())


def get_client_ip(request: Request) -> str:
    forwarded = (request.headers.get("x-forwarded-for") or "").strip()
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


app = FastAPI(title="YouRate API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS", "PUT", "DELETE"],
    allow_headers=ALLOWED_HEADERS.split(","),
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if isinstance(exc, StorageError):
        logger.error("%s %s storage failure during %s: %s %s", request.method, request.url.path, exc.operation, exc.detail, exc.context)
    elif exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail or exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_request: Request, _exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# ---------------------------
# Routes
# ---------------------------

@app.get("/health")
def health(settings: Settings = Depends(get_settings)):
    return {"ok": True, "stage": settings.stage}


@app.get("/search")
def search(
    q: str | None = None,
    maxResults: str | None = None,
    settings: Settings = Depends(get_settings),
    store: RatingsStore = Depends(get_ratings_store),
):
    return ratings_api.search_creators(settings, store, q, maxResults)


@app.get("/ratings")
def list_ratings(
    channelId: str | None = None,
    store: RatingsStore = Depends(get_ratings_store),
):
    return ratings_api.get_channel_ratings(store, channelId)


@app.post("/ratings", status_code=201)
def create_rating(
    request: Request,
    payload: Any = Body(default=None),
    store: RatingsStore = Depends(get_ratings_store),
):
    return submit_rating(payload, store, source_ip=get_client_ip(request))


@app.get("/profile")
def profile(
    channelId: str | None = None,
    limit: str | None = None,
    cursor: str | None = None,
    settings: Settings = Depends(get_settings),
    store: RatingsStore = Depends(get_ratings_store),
):
    return ratings_api.get_creator_profile(settings, store, channelId, limit=limit, cursor=cursor)


@app.get("/top-creators")
def top_creators(
    limit: str | None = None,
    cursor: str | None = None,
    minRatings: str | None = None,
    store: RatingsStore = Depends(get_ratings_store),
):
    return ratings_api.get_top_creators(store, limit=limit, cursor=cursor, min_ratings=minRatings)


@app.get("/recent-ratings")
def recent_ratings(
    limit: str | None = None,
    store: RatingsStore = Depends(get_ratings_store),
):
    return ratings_api.get_recent_ratings(store, limit)
