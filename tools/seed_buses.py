import os, sys
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src'))

from busdirectory.errors import Conflict
from busdirectory.records import new_bus_item
from busdirectory.repository import get_repository

SAMPLE_BUSES = [
    {
        'licenseNo': 'NC-1234', 'companyName': 'SuperLine Express', 'from': 'Colombo', 'to': 'Jaffna',
        'busType': 'luxury', 'seatCount': 45, 'year': 2020, 'adultFare': 1200, 'childFare': 600,
        'journeyDuration': '6h 30m', 'stops': ['Kurunegala', 'Anuradhapura', 'Vavuniya'],
        'journeys': [{'start': '06:00', 'end': '12:30'}, {'start': '14:00', 'end': '20:30'},
                     {'start': '22:00', 'end': '04:30'}],
        'returnJourneys': [{'start': '07:00', 'end': '13:30'}, {'start': '15:30', 'end': '22:00'},
                           {'start': '23:00', 'end': '05:30'}],
        'contacts': {'driver': '0771234567', 'conductor': '0779876543', 'booking': '0112345678'}
    },
    {
        'licenseNo': 'NB-4521', 'companyName': 'Hill Country Travels', 'from': 'Ja-Ela', 'to': 'Kandy',
        'busType': 'semi', 'seatCount': 50, 'adultFare': 520,
        'journeys': [{'start': '05:45', 'end': '09:15'}, {'start': '13:00', 'end': '16:30'}],
        'returnJourneys': [{'start': '10:00', 'end': '13:30'}]
    },
    {
        'licenseNo': 'ND-7788', 'companyName': 'Southern Line', 'from': 'Galle', 'to': 'Matara',
        'stops': ['Ahangama', 'Weligama'], 'adultFare': 140,
        'journeys': [{'start': '05:30', 'end': '06:45'}, {'start': '12:00', 'end': '13:15'}]
    },
]

def seed(repository):
    created = 0
    for sample in SAMPLE_BUSES:
        try:
            repository.create(new_bus_item(sample, created_by='seed@localhost'))
            created += 1
            print(f"Created {sample['licenseNo']} ({sample['from']} → {sample['to']})")
        except Conflict:
            print(f"Skipped {sample['licenseNo']}, already exists")
    return created

if __name__ == '__main__':
    # Writes to BUS_TABLE_NAME unless BUS_STORE=memory
    count = seed(get_repository())
    print(f"Seeded {count} buses.")
