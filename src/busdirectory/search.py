from busdirectory.config import SCAN_LIMIT, SEARCH_RESULT_CAP
from busdirectory.errors import BadRequest, IndexUnavailable
from busdirectory.log import log_error, log_event
from busdirectory.matching import match_direction, parse_route_query, select_journeys
from busdirectory.records import is_verified, route_label, with_derived_fields


def _wanted(value):
    return bool(value) and value != 'all'


def search_params(query_params):
    """Reads /search query string parameters into search_buses() params."""
    query_params = query_params or {}
    return {
        'query': (query_params.get('q') or '').strip(),
        'busType': query_params.get('type'),
        'verifiedOnly': query_params.get('verified') == 'true',
        'companyName': query_params.get('company'),
        'route': query_params.get('route'),
        'directional': query_params.get('directional') == 'true',
        'from': (query_params.get('from') or '').strip(),
        'to': (query_params.get('to') or '').strip(),
    }


def fetch_candidates(repository, params):
    if _wanted(params.get('companyName')):
        index_name, value = 'CompanyIndex', params['companyName']
    elif params.get('route'):
        index_name, value = 'RouteIndex', params['route']
    elif _wanted(params.get('busType')):
        index_name, value = 'TypeIndex', params['busType']
    else:
        return repository.scan_all(SCAN_LIMIT)

    try:
        return repository.query_by_index(index_name, value)
    except IndexUnavailable as e:
        log_error("Index lookup failed, falling back to scan", e)
        return repository.scan_all(SCAN_LIMIT)


def _searchable_text(bus):
    return ' '.join([
        bus.get('busNumber') or '',
        bus.get('licenseNo') or '',
        bus.get('companyName') or '',
        bus.get('from') or '',
        bus.get('to') or '',
        bus.get('route') or '',
        ' '.join(bus.get('stops') or []),
        bus.get('busType') or '',
    ]).lower()


def _apply_filters(buses, params):
    if _wanted(params.get('busType')):
        buses = [bus for bus in buses if bus.get('busType') == params['busType']]
    if params.get('verifiedOnly'):
        buses = [bus for bus in buses if is_verified(bus)]
    return buses


def _directional_results(candidates, origin, destination):
    results = []
    for bus in candidates:
        direction = match_direction(bus, origin, destination)
        if direction is None:
            continue
        selected = select_journeys(bus, direction)
        out = with_derived_fields(bus)
        out.update({
            'relevantJourneys': selected['relevantJourneys'],
            'direction': selected['direction'],
            'dailyDepartures': len(selected['relevantJourneys']),
            'name': selected['routeLabel'],
            'searchDirection': route_label(origin, destination),
        })
        results.append(out)
    return results


def _text_results(candidates, query, params):
    matches = candidates
    if query:
        needle = query.lower()
        matches = [bus for bus in matches if needle in _searchable_text(bus)]
    matches = _apply_filters(matches, params)
    return [with_derived_fields(bus) for bus in matches[:SEARCH_RESULT_CAP]], len(matches)


def search_buses(repository, params):
    query = params.get('query') or ''
    directional = params.get('directional')
    origin, destination = params.get('from') or '', params.get('to') or ''
    route_query = None

    if not directional:
        route_query = parse_route_query(query)
        if route_query:
            directional = True
            origin, destination = route_query

    if directional and (not origin or not destination):
        raise BadRequest("Directional search requires both from and to")

    candidates = fetch_candidates(repository, params)

    if directional:
        buses = _apply_filters(_directional_results(candidates, origin, destination), params)
        total_found = len(buses)
        # "back to basics" reads like a route but may be a company name
        if not buses and route_query:
            directional = False
            origin, destination = '', ''
            buses, total_found = _text_results(candidates, query, params)
    else:
        buses, total_found = _text_results(candidates, query, params)

    log_event("BusSearch", {"query": query, "directional": bool(directional),
                            "from": origin, "to": destination,
                            "candidates": len(candidates), "found": total_found})
    return {
        'buses': buses,
        'count': len(buses),
        'totalFound': total_found,
        'query': query,
        'filters': {
            'type': params.get('busType'),
            'verifiedOnly': bool(params.get('verifiedOnly')),
            'company': params.get('companyName'),
            'route': params.get('route'),
            'directional': bool(directional),
            'from': origin or None,
            'to': destination or None,
        }
    }
