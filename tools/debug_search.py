import os, sys, json
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src'))

from busdirectory.matching import match_direction, normalize_location
from busdirectory.records import decimal_default
from busdirectory.repository import get_repository
from busdirectory.search import search_buses, search_params

def explain(repository, origin, destination):
    print(f"--- Debugging search {origin} → {destination} ---")
    print(f"Search from: {origin!r} -> normalized: {normalize_location(origin)!r}")
    print(f"Search to: {destination!r} -> normalized: {normalize_location(destination)!r}")

    for bus in repository.scan_all():
        direction = match_direction(bus, origin, destination)
        print(f"{bus.get('licenseNo')}: {bus.get('from')!r} -> {normalize_location(bus.get('from'))!r}, "
              f"{bus.get('to')!r} -> {normalize_location(bus.get('to'))!r}  => {direction or 'no match'}")

    result = search_buses(repository, search_params({'directional': 'true', 'from': origin, 'to': destination}))
    print(f"Filtered buses: {result['count']}")
    for bus in result['buses']:
        print(json.dumps({k: bus.get(k) for k in ('licenseNo', 'direction', 'name', 'relevantJourneys')},
                         default=decimal_default, ensure_ascii=False))

if __name__ == '__main__':
    if len(sys.argv) != 3:
        print("Usage: debug_search.py FROM TO")
        sys.exit(1)

    repository = get_repository()
    if os.environ.get('BUS_STORE') == 'memory':
        from seed_buses import seed
        seed(repository)
    explain(repository, sys.argv[1], sys.argv[2])
