import json
import time
import datetime
from decimal import Decimal

from busdirectory.config import VERIFIED_THRESHOLD
from busdirectory.errors import BadRequest

BUS_TYPES = ('normal', 'semi', 'luxury')

# Never overwritten by a partial update
IMMUTABLE_FIELDS = ('licenseNo', 'id', 'createdAt', 'createdBy')
LEDGER_FIELDS = ('verifyCount', 'reportCount', 'verifiedVotes', 'verified')


def now_iso():
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def route_label(origin, destination):
    return f"{origin} → {destination}"


def as_count(value):
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def is_verified(bus):
    return (as_count(bus.get('verifyCount')) >= VERIFIED_THRESHOLD
            or as_count(bus.get('verifiedVotes')) >= VERIFIED_THRESHOLD)


def daily_departures(bus):
    total = len(bus.get('journeys') or []) + len(bus.get('returnJourneys') or [])
    return total or as_count(bus.get('dailyDepartures'))


def with_derived_fields(bus):
    """Copy of a stored bus with the fields the frontend reads."""
    out = dict(bus)
    out['id'] = bus.get('id') or bus.get('licenseNo')
    out['dailyDepartures'] = daily_departures(bus)
    out['verified'] = is_verified(bus)
    out['code'] = bus.get('busNumber') or bus.get('licenseNo')
    out['name'] = bus.get('route') or route_label(bus.get('from'), bus.get('to'))
    out['type'] = bus.get('busType') or 'normal'
    return out


def new_bus_item(body, created_by=None):
    """Builds a BusRecord from a create request body."""
    license_no = str(body.get('licenseNo') or body.get('busNumber') or '').strip()
    company = str(body.get('companyName') or '').strip()
    origin = str(body.get('from') or '').strip()
    destination = str(body.get('to') or '').strip()

    missing = [name for name, value in (('licenseNo', license_no), ('companyName', company),
                                        ('from', origin), ('to', destination)) if not value]
    if missing:
        raise BadRequest(f"Missing required fields: {', '.join(missing)}")

    bus_type = body.get('busType') or 'normal'
    if bus_type not in BUS_TYPES:
        raise BadRequest(f"busType must be one of: {', '.join(BUS_TYPES)}")

    timestamp = now_iso()
    item = {k: v for k, v in body.items() if v is not None}
    item.update({
        'licenseNo': license_no,
        'busNumber': str(body.get('busNumber') or license_no).strip(),
        'companyName': company,
        'from': origin,
        'to': destination,
        'route': route_label(origin, destination),
        'busType': bus_type,
        'journeys': body.get('journeys') or [],
        'verifyCount': 0,
        'reportCount': 0,
        'verifiedVotes': 0,
        'createdAt': timestamp,
        'updatedAt': timestamp,
        'id': f"bus_{license_no}_{int(time.time() * 1000)}"
    })
    if created_by:
        item['createdBy'] = created_by
    return item


def update_fields(body, existing):
    """SET fields for a partial update, route recomputed when an endpoint moves.

    Vote counters and the derived verified flag are left alone; they only
    move through the vote ledger or the legacy increment.
    """
    for name in ('from', 'to'):
        if body.get(name) is not None and not str(body[name]).strip():
            raise BadRequest(f"{name} cannot be empty")
    if 'busType' in body and body['busType'] not in BUS_TYPES:
        raise BadRequest(f"busType must be one of: {', '.join(BUS_TYPES)}")

    fields = {k: v for k, v in body.items()
              if k not in IMMUTABLE_FIELDS and k not in LEDGER_FIELDS and v is not None}
    if body.get('from') or body.get('to'):
        fields['route'] = route_label(body.get('from') or existing.get('from'),
                                      body.get('to') or existing.get('to'))
    fields['updatedAt'] = now_iso()
    return fields


def to_dynamo(item):
    # DynamoDB rejects float, it wants Decimal
    return json.loads(json.dumps(item, default=decimal_default), parse_float=Decimal)


def decimal_default(obj):
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    raise TypeError
