import datetime

from busdirectory.records import route_label

SERVICE_START = 5 * 60
SERVICE_END = 23 * 60
DEFAULT_HEADWAY_MINS = 15

# Asia/Colombo has no DST
SRI_LANKA_OFFSET = datetime.timedelta(hours=5, minutes=30)


def local_now():
    return datetime.datetime.utcnow() + SRI_LANKA_OFFSET


def minutes_to_time(total):
    return f"{total // 60:02d}:{total % 60:02d}"


def time_to_minutes(value):
    try:
        hours, minutes = value.split(':')[:2]
        return int(hours) * 60 + int(minutes)
    except (AttributeError, ValueError):
        return None


def compute_next_departure(headway_mins, now=None):
    """Next departure on a fixed headway inside the 05:00-23:00 service window."""
    now = now or local_now()
    current = now.hour * 60 + now.minute
    if current < SERVICE_START:
        return {"nextTime": minutes_to_time(SERVICE_START), "minutesUntil": SERVICE_START - current}
    if current > SERVICE_END:
        return {"nextTime": None, "minutesUntil": None, "ended": True}

    intervals = (current - SERVICE_START) // headway_mins
    next_minutes = SERVICE_START + (intervals + 1) * headway_mins
    if next_minutes > SERVICE_END:
        return {"nextTime": None, "minutesUntil": None, "ended": True}
    return {"nextTime": minutes_to_time(next_minutes), "minutesUntil": next_minutes - current}


def upcoming_departures(buses, route, now=None, limit=5):
    """Departures still to come today on `route` ("From → To"), soonest first.

    Forward journeys count for the bus's own route label, return journeys for
    the reversed one.
    """
    now = now or local_now()
    current = now.hour * 60 + now.minute
    departures = []

    for bus in buses:
        if route_label(bus.get('from'), bus.get('to')) == route or bus.get('route') == route:
            journeys = bus.get('journeys') or []
        elif route_label(bus.get('to'), bus.get('from')) == route:
            journeys = bus.get('returnJourneys') or []
        else:
            continue

        for journey in journeys:
            start = time_to_minutes(journey.get('start'))
            if start is None or start < current:
                continue
            departures.append({
                "time": minutes_to_time(start),
                "type": bus.get('busType') or 'normal',
                "fare": bus.get('adultFare'),
                "minutesAway": start - current,
                "licenseNo": bus.get('licenseNo')
            })

    departures.sort(key=lambda d: d['minutesAway'])
    return departures[:limit]
