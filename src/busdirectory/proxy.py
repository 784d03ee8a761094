import json
import traceback

from busdirectory.config import CORS_ORIGIN
from busdirectory.errors import ApiError, BadRequest, Unauthenticated
from busdirectory.log import log_error
from busdirectory.records import decimal_default

CORS_HEADERS = {
    "Access-Control-Allow-Origin": CORS_ORIGIN,
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS"
}


def response_proxy(code, body):
    return {
        "statusCode": code,
        "headers": {"Content-Type": "application/json", "Cache-Control": "no-cache", **CORS_HEADERS},
        "body": json.dumps(body, default=decimal_default)
    }


def preflight():
    return response_proxy(200, {"message": "CORS preflight"})


def error_response(err, where):
    """Maps an exception raised inside a handler to a proxy response."""
    if isinstance(err, ApiError):
        return response_proxy(err.status_code, {"error": err.message})
    log_error(f"{where} failed", err)
    traceback.print_exc()
    return response_proxy(500, {"error": "Internal server error."})


def parse_body(event):
    raw = event.get('body') or '{}'
    try:
        body = json.loads(raw)
    except (TypeError, ValueError):
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")
    return body


def path_param(event, name):
    return (event.get('pathParameters') or {}).get(name)


def claims(event):
    authorizer = (event.get('requestContext') or {}).get('authorizer') or {}
    # REST API Cognito authorizer vs HTTP API JWT authorizer
    return authorizer.get('claims') or (authorizer.get('jwt') or {}).get('claims') or {}


def caller_email(event):
    return claims(event).get('email')


def require_caller(event):
    email = caller_email(event)
    if not email:
        raise Unauthenticated()
    return email
