import re

FORWARD = 'forward'
RETURN = 'return'
EMPTY = 'empty'

# Generic place suffixes; whitespace is gone before these are removed
_GENERIC_WORDS = re.compile(r'fort|central|main|bus\s*stand|station')
_WHITESPACE = re.compile(r'\s+')


def normalize_location(name):
    """Reduces a place name to a comparable form.

    "Colombo Fort", "colombo" and "Colombo Central Bus Stand" all become
    "colombo".
    """
    if not name:
        return ""
    compact = _WHITESPACE.sub('', name.lower())
    return _GENERIC_WORDS.sub('', compact)


def _overlaps(a, b):
    return a in b or b in a


def match_direction(bus, search_from, search_to):
    """Returns FORWARD, RETURN or None for a bus against a from/to query.

    Containment is checked both ways, so partial names ("colo") match.
    Forward wins when both directions match.
    """
    bus_from = normalize_location(bus.get('from'))
    bus_to = normalize_location(bus.get('to'))
    wanted_from = normalize_location(search_from)
    wanted_to = normalize_location(search_to)

    if _overlaps(bus_from, wanted_from) and _overlaps(bus_to, wanted_to):
        return FORWARD
    if _overlaps(bus_from, wanted_to) and _overlaps(bus_to, wanted_from):
        return RETURN
    return None


def select_journeys(bus, direction):
    if direction == FORWARD:
        return {
            'relevantJourneys': list(bus.get('journeys') or []),
            'direction': FORWARD,
            'routeLabel': f"{bus.get('from')} → {bus.get('to')}"
        }
    if direction == RETURN:
        return {
            'relevantJourneys': list(bus.get('returnJourneys') or []),
            'direction': RETURN,
            'routeLabel': f"{bus.get('to')} → {bus.get('from')}"
        }
    return {'relevantJourneys': [], 'direction': EMPTY, 'routeLabel': ""}


def parse_route_query(query):
    """Splits "ja ela to kandy" into ("ja ela", "kandy"); None if not a route."""
    if not query:
        return None
    parts = re.split(r'\s+to\s+', query.strip(), maxsplit=1, flags=re.IGNORECASE)
    if len(parts) != 2:
        return None
    origin, destination = parts[0].strip(), parts[1].strip()
    if not origin or not destination:
        return None
    return origin, destination
