import base64
import json
from typing import Any

READ_ONLY_METHODS = "GET,OPTIONS"
ALL_METHODS = "GET,POST,OPTIONS,PUT,DELETE"
ALLOWED_HEADERS = "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token,Origin,Accept"


def cors_headers(methods: str = READ_ONLY_METHODS) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": methods,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
    }


def build_response(status_code: int, body: Any = None, methods: str = READ_ONLY_METHODS) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": cors_headers(methods),
        "body": json.dumps(body) if body is not None else "",
    }


def http_method(event: dict[str, Any]) -> str | None:
    method = event.get("httpMethod")
    if not method:
        method = ((event.get("requestContext") or {}).get("http") or {}).get("method")
    return method.upper() if isinstance(method, str) else None


def query_params(event: dict[str, Any]) -> dict[str, Any]:
    """
    API Gateway puts parameters in ``queryStringParameters`` (null when there
    are none). A direct invocation carries them at the top level.
    """
    params = event.get("queryStringParameters")
    if isinstance(params, dict):
        return params
    if http_method(event) is None:
        return {k: v for k, v in event.items() if k not in {"body", "headers", "requestContext"}}
    return {}


def json_body(event: dict[str, Any]) -> Any:
    """Parsed request body. Raises ValueError when it is not valid JSON."""
    body = event.get("body")
    if body is None or body == "":
        return {}
    if isinstance(body, (dict, list)):
        return body
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return json.loads(body)


def header(event: dict[str, Any], name: str) -> str:
    headers = event.get("headers") or {}
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered and value:
            return str(value)
    return ""


def source_ip(event: dict[str, Any]) -> str:
    context = event.get("requestContext") or {}
    ip = (context.get("identity") or {}).get("sourceIp") or (context.get("http") or {}).get("sourceIp")
    if ip:
        return ip
    forwarded = header(event, "x-forwarded-for").strip()
    if forwarded:
        return forwarded.split(",")[0].strip()
    return "unknown"
