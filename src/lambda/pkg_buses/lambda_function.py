import json
from urllib.parse import quote, unquote

from busdirectory.errors import BadRequest, NotFound
from busdirectory.log import log_error, log_event
from busdirectory.proxy import (error_response, parse_body, path_param, preflight,
                                require_caller, response_proxy)
from busdirectory.records import new_bus_item, update_fields, with_derived_fields
from busdirectory.repository import get_repository

DEFAULT_LIMIT = 50
MAX_LIMIT = 100

repository = get_repository()


def encode_last_key(key):
    return quote(json.dumps(key)) if key else None


def decode_last_key(raw):
    if not raw:
        return None
    try:
        key = json.loads(unquote(raw))
    except ValueError as e:
        log_error("Invalid lastKey parameter", e)
        return None
    # The table key is licenseNo alone; anything else would fail the scan
    if isinstance(key, dict) and list(key) == ['licenseNo'] and isinstance(key['licenseNo'], str):
        return key
    log_error(f"Ignoring lastKey that is not a bus table key: {raw}")
    return None


def parse_limit(raw):
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    if limit < 1:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def list_buses(event):
    params = event.get('queryStringParameters') or {}
    items, last_key = repository.list(parse_limit(params.get('limit')), decode_last_key(params.get('lastKey')))
    buses = [with_derived_fields(bus) for bus in items]
    return response_proxy(200, {"buses": buses, "count": len(buses), "lastKey": encode_last_key(last_key)})


def get_bus(license_no):
    bus = repository.get(license_no)
    if not bus:
        raise NotFound("Bus not found")
    return response_proxy(200, with_derived_fields(bus))


def create_bus(event):
    user = require_caller(event)
    item = new_bus_item(parse_body(event), created_by=user)
    repository.create(item)
    log_event("BusCreated", {"licenseNo": item['licenseNo'], "createdBy": user})
    return response_proxy(201, {"message": "Bus created successfully", "bus": with_derived_fields(item)})


def update_bus(license_no, event):
    user = require_caller(event)
    if not license_no:
        raise BadRequest("License number is required")

    body = parse_body(event)
    existing = repository.get(license_no)
    if not existing:
        raise NotFound("Bus not found")

    if body.get('verifiedVotes') == 'increment':
        bus = repository.increment_legacy_votes(license_no)
        log_event("LegacyVote", {"licenseNo": license_no, "user": user})
        return response_proxy(200, {"message": "Vote recorded successfully", "bus": with_derived_fields(bus)})

    bus = repository.update(license_no, update_fields(body, existing))
    log_event("BusUpdated", {"licenseNo": license_no, "user": user, "fields": sorted(body)})
    return response_proxy(200, {"message": "Bus updated successfully", "bus": with_derived_fields(bus)})


def lambda_handler(event, context):
    try:
        method = event.get('httpMethod') or event.get('requestContext', {}).get('http', {}).get('method')
        license_no = path_param(event, 'licenseNo')
        log_event("BusesRequest", {"method": method, "licenseNo": license_no})

        if method == 'OPTIONS':
            return preflight()
        if method == 'GET':
            return get_bus(license_no) if license_no else list_buses(event)
        if method == 'POST':
            return create_bus(event)
        if method == 'PUT':
            return update_bus(license_no, event)
        return response_proxy(405, {"error": "Method not allowed"})
    except Exception as e:
        return error_response(e, "Bus function")
