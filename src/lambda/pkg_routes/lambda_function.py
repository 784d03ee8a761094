from busdirectory.log import log_event
from busdirectory.proxy import error_response, preflight, response_proxy
from busdirectory.records import as_count, daily_departures, is_verified, now_iso, route_label
from busdirectory.repository import get_repository
from busdirectory.schedule import DEFAULT_HEADWAY_MINS, compute_next_departure, upcoming_departures

ROUTES_SCAN_LIMIT = 50
POPULAR_THRESHOLD = 2

repository = get_repository()


def as_route(bus, now=None):
    """Legacy route card for the home screen."""
    return {
        "id": bus.get('id') or bus.get('licenseNo'),
        "code": bus.get('busNumber') or bus.get('licenseNo'),
        "name": bus.get('route') or route_label(bus.get('from'), bus.get('to')),
        "from": bus.get('from'),
        "to": bus.get('to'),
        "type": bus.get('busType') or 'normal',
        "verified": is_verified(bus),
        "popular": max(as_count(bus.get('verifiedVotes')), as_count(bus.get('verifyCount'))) >= POPULAR_THRESHOLD,
        "headwayMins": DEFAULT_HEADWAY_MINS,
        "dailyDepartures": daily_departures(bus),
        "nextDeparture": compute_next_departure(DEFAULT_HEADWAY_MINS, now)
    }


def get_routes():
    routes = [as_route(bus) for bus in repository.scan_all(ROUTES_SCAN_LIMIT)]
    return response_proxy(200, {"routes": routes, "count": len(routes)})


def get_next_bus(event):
    params = event.get('queryStringParameters') or {}
    route = params.get('route') or 'Unknown Route'
    next_buses = upcoming_departures(repository.scan_all(), route)
    return response_proxy(200, {"route": route, "nextBuses": next_buses, "updated": now_iso()})


def lambda_handler(event, context):
    try:
        if event.get('httpMethod') == 'OPTIONS':
            return preflight()

        path = event.get('resource') or event.get('path') or event.get('rawPath') or ''
        log_event("RoutesRequest", {"path": path})
        if path.rstrip('/').endswith('/next-bus'):
            return get_next_bus(event)
        return get_routes()
    except Exception as e:
        return error_response(e, "Routes function")
