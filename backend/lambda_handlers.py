"""
API Gateway (proxy integration) entry points.

One function per deployed Lambda. Each answers OPTIONS before touching
anything else, delegates to the shared operations and turns ``ApiError`` into
a proxy response carrying the CORS headers.
"""
import logging
from functools import lru_cache
from typing import Any, Callable

try:
    from backend.app import gateway
    from backend.app.config import Settings
    from backend.app.errors import ApiError, StorageError, ValidationError
    from backend.app.services import ratings_api
    from backend.app.services.ratings_store import RatingsStore
    from backend.app.services.submission import build_record, save_rating
except ModuleNotFoundError:
    from app import gateway
    from app.config import Settings
    from app.errors import ApiError, StorageError, ValidationError
    from app.services import ratings_api
    from app.services.ratings_store import RatingsStore
    from app.services.submission import build_record, save_rating

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def get_store() -> RatingsStore:
    # one client per warm container
    return RatingsStore.from_settings(get_settings())


def _dispatch(
    name: str,
    event: dict[str, Any],
    operation: Callable[[dict[str, Any]], tuple[int, Any]],
    methods: str = gateway.READ_ONLY_METHODS,
) -> dict[str, Any]:
    event = event if isinstance(event, dict) else {}
    if gateway.http_method(event) == "OPTIONS":
        return gateway.build_response(200, {}, methods)
    try:
        status_code, body = operation(event)
    except StorageError as exc:
        logger.error("%s storage failure during %s: %s %s", name, exc.operation, exc.detail, exc.context)
        return gateway.build_response(exc.status_code, exc.to_body(), methods)
    except ApiError as exc:
        if exc.status_code >= 500:
            logger.error("%s failed: %s", name, exc.detail or exc.message)
        return gateway.build_response(exc.status_code, exc.to_body(), methods)
    except Exception:
        logger.exception("%s failed with an unexpected error", name)
        return gateway.build_response(500, {"error": "Internal server error"}, methods)
    return gateway.build_response(status_code, body, methods)


def search_handler(event, context):
    def operation(evt):
        params = gateway.query_params(evt)
        logger.info("search: q=%r maxResults=%r", params.get("q"), params.get("maxResults"))
        q = ratings_api.require_param(params.get("q"), "q", "Search query")
        return 200, ratings_api.search_creators(
            get_settings(),
            get_store(),
            q,
            params.get("maxResults"),
        )

    return _dispatch("search", event, operation)


def ratings_handler(event, context):
    def operation(evt):
        method = gateway.http_method(evt)
        if method == "GET":
            params = gateway.query_params(evt)
            channel_id = ratings_api.require_param(params.get("channelId"), "channelId", "Channel ID")
            return 200, ratings_api.get_channel_ratings(get_store(), channel_id)
        if method == "POST":
            try:
                payload = gateway.json_body(evt)
            except ValueError:
                raise ValidationError("Invalid request body")
            record = build_record(payload, source_ip=gateway.source_ip(evt))
            return 201, save_rating(get_store(), record)
        return 405, {"error": "Method not allowed"}

    return _dispatch("ratings", event, operation, methods=gateway.ALL_METHODS)


def profile_handler(event, context):
    def operation(evt):
        params = gateway.query_params(evt)
        channel_id = ratings_api.require_param(params.get("channelId"), "channelId", "Channel ID")
        return 200, ratings_api.get_creator_profile(
            get_settings(),
            get_store(),
            channel_id,
            limit=params.get("limit"),
            cursor=params.get("cursor"),
        )

    return _dispatch("profile", event, operation, methods=gateway.ALL_METHODS)


def top_creators_handler(event, context):
    def operation(evt):
        params = gateway.query_params(evt)
        logger.info("top-creators: limit=%r minRatings=%r", params.get("limit"), params.get("minRatings"))
        return 200, ratings_api.get_top_creators(
            get_store(),
            limit=params.get("limit"),
            cursor=params.get("cursor"),
            min_ratings=params.get("minRatings"),
        )

    return _dispatch("top-creators", event, operation)


def recent_ratings_handler(event, context):
    def operation(evt):
        if context is not None:
            logger.info(
                "recent-ratings invoked: function=%s request=%s",
                getattr(context, "function_name", None),
                getattr(context, "aws_request_id", None),
            )
        params = gateway.query_params(evt)
        limit = params.get("limit")
        if limit is None:
            try:
                body = gateway.json_body(evt)
            except ValueError:
                logger.warning("Ignoring unparsable recent-ratings body")
                body = {}
            if isinstance(body, dict):
                limit = body.get("limit")
        return 200, ratings_api.get_recent_ratings(get_store(), limit)

    return _dispatch("recent-ratings", event, operation)
