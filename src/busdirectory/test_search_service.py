import unittest
from unittest.mock import patch

from busdirectory.errors import BadRequest, IndexUnavailable
from busdirectory.repository import InMemoryBusRepository
from busdirectory.search import search_buses, search_params

COLOMBO_KANDY = {
    'licenseNo': 'NC-1234', 'busNumber': 'NC-1234', 'companyName': 'SuperLine',
    'from': 'Colombo', 'to': 'Kandy', 'route': 'Colombo → Kandy', 'busType': 'normal',
    'journeys': [{'start': '06:00', 'end': '09:00'}],
    'returnJourneys': [{'start': '07:00', 'end': '10:00'}],
    'verifyCount': 0, 'reportCount': 0
}
GALLE_MATARA = {
    'licenseNo': 'ND-2222', 'busNumber': 'ND-2222', 'companyName': 'Southern Express',
    'from': 'Galle', 'to': 'Matara', 'route': 'Galle → Matara', 'busType': 'luxury',
    'journeys': [{'start': '05:30', 'end': '06:45'}, {'start': '12:00', 'end': '13:15'}],
    'stops': ['Ahangama', 'Weligama'],
    'verifyCount': 3, 'reportCount': 0
}
COLOMBO_JAFFNA = {
    'licenseNo': 'NE-3333', 'companyName': 'SuperLine',
    'from': 'Colombo Fort', 'to': 'Jaffna', 'route': 'Colombo Fort → Jaffna', 'busType': 'semi',
    'journeys': [{'start': '06:00', 'end': '12:30'}, {'start': '14:00', 'end': '20:30'}],
    'returnJourneys': [{'start': '07:00', 'end': '13:30'}],
    'verifiedVotes': 5
}


def params(**overrides):
    base = search_params({})
    base.update(overrides)
    return base


class TestSearchParams(unittest.TestCase):

    def test_reads_query_string(self):
        parsed = search_params({'q': ' kandy ', 'type': 'luxury', 'verified': 'true',
                                'directional': 'true', 'from': ' Colombo', 'to': 'Kandy ',
                                'company': 'SuperLine', 'route': 'Colombo → Kandy'})
        self.assertEqual(parsed, {
            'query': 'kandy', 'busType': 'luxury', 'verifiedOnly': True,
            'companyName': 'SuperLine', 'route': 'Colombo → Kandy',
            'directional': True, 'from': 'Colombo', 'to': 'Kandy'
        })

    def test_defaults(self):
        parsed = search_params(None)
        self.assertFalse(parsed['verifiedOnly'])
        self.assertFalse(parsed['directional'])
        self.assertEqual(parsed['query'], '')


class TestTextSearch(unittest.TestCase):

    def setUp(self):
        self.repo = InMemoryBusRepository([COLOMBO_KANDY, GALLE_MATARA, COLOMBO_JAFFNA])

    def licenses(self, result):
        return [bus['licenseNo'] for bus in result['buses']]

    def test_no_query_returns_everything(self):
        result = search_buses(self.repo, params())
        self.assertEqual(self.licenses(result), ['NC-1234', 'ND-2222', 'NE-3333'])
        self.assertEqual(result['count'], 3)
        self.assertEqual(result['totalFound'], 3)

    def test_query_matches_stops(self):
        result = search_buses(self.repo, params(query='weligama'))
        self.assertEqual(self.licenses(result), ['ND-2222'])

    def test_query_is_case_insensitive(self):
        result = search_buses(self.repo, params(query='JAFFNA'))
        self.assertEqual(self.licenses(result), ['NE-3333'])

    def test_derived_fields(self):
        bus = search_buses(self.repo, params(query='NC-1234'))['buses'][0]
        self.assertEqual(bus['dailyDepartures'], 2)
        self.assertFalse(bus['verified'])
        self.assertEqual(bus['code'], 'NC-1234')
        self.assertEqual(bus['name'], 'Colombo → Kandy')
        self.assertEqual(bus['type'], 'normal')
        self.assertEqual(bus['id'], 'NC-1234')

    def test_code_falls_back_to_license(self):
        bus = search_buses(self.repo, params(query='NE-3333'))['buses'][0]
        self.assertEqual(bus['code'], 'NE-3333')

    def test_verified_only_honours_both_counters(self):
        result = search_buses(self.repo, params(verifiedOnly=True))
        self.assertEqual(self.licenses(result), ['ND-2222', 'NE-3333'])

    def test_type_uses_index(self):
        with patch.object(self.repo, 'query_by_index', wraps=self.repo.query_by_index) as query:
            result = search_buses(self.repo, params(busType='luxury'))
        query.assert_called_once_with('TypeIndex', 'luxury')
        self.assertEqual(self.licenses(result), ['ND-2222'])

    def test_type_all_scans(self):
        with patch.object(self.repo, 'query_by_index') as query:
            result = search_buses(self.repo, params(busType='all'))
        query.assert_not_called()
        self.assertEqual(result['count'], 3)

    def test_company_uses_index(self):
        with patch.object(self.repo, 'query_by_index', wraps=self.repo.query_by_index) as query:
            result = search_buses(self.repo, params(companyName='SuperLine'))
        query.assert_called_once_with('CompanyIndex', 'SuperLine')
        self.assertEqual(self.licenses(result), ['NC-1234', 'NE-3333'])

    def test_index_failure_falls_back_to_scan(self):
        """The type filter is reapplied after the fallback scan."""
        with patch.object(self.repo, 'query_by_index', side_effect=IndexUnavailable("TypeIndex missing")):
            result = search_buses(self.repo, params(busType='luxury'))
        self.assertEqual(self.licenses(result), ['ND-2222'])

    def test_results_capped_at_fifty(self):
        repo = InMemoryBusRepository([
            dict(COLOMBO_KANDY, licenseNo=f'NA-{i:04d}', busNumber=f'NA-{i:04d}') for i in range(60)
        ])
        result = search_buses(repo, params(query='colombo'))
        self.assertEqual(result['count'], 50)
        self.assertEqual(result['totalFound'], 60)

    def test_same_params_same_result(self):
        first = search_buses(self.repo, params(query='colombo'))
        second = search_buses(self.repo, params(query='colombo'))
        self.assertEqual(first, second)


class TestDirectionalSearch(unittest.TestCase):

    def setUp(self):
        self.repo = InMemoryBusRepository([COLOMBO_KANDY, GALLE_MATARA, COLOMBO_JAFFNA])

    def test_forward(self):
        result = search_buses(self.repo, params(directional=True, **{'from': 'Colombo', 'to': 'Kandy'}))
        self.assertEqual(result['count'], 1)
        bus = result['buses'][0]
        self.assertEqual(bus['licenseNo'], 'NC-1234')
        self.assertEqual(bus['direction'], 'forward')
        self.assertEqual(bus['relevantJourneys'], [{'start': '06:00', 'end': '09:00'}])
        self.assertEqual(bus['dailyDepartures'], 1)
        self.assertEqual(bus['name'], 'Colombo → Kandy')
        self.assertEqual(bus['searchDirection'], 'Colombo → Kandy')

    def test_return(self):
        result = search_buses(self.repo, params(directional=True, **{'from': 'Kandy', 'to': 'Colombo'}))
        bus = result['buses'][0]
        self.assertEqual(bus['licenseNo'], 'NC-1234')
        self.assertEqual(bus['direction'], 'return')
        self.assertEqual(bus['relevantJourneys'], [{'start': '07:00', 'end': '10:00'}])
        self.assertEqual(bus['name'], 'Kandy → Colombo')
        self.assertEqual(bus['searchDirection'], 'Kandy → Colombo')

    def test_search_direction_keeps_typed_names(self):
        result = search_buses(self.repo, params(directional=True, **{'from': 'Colombo Fort', 'to': 'jaffna'}))
        bus = result['buses'][0]
        self.assertEqual(bus['licenseNo'], 'NE-3333')
        self.assertEqual(bus['searchDirection'], 'Colombo Fort → jaffna')
        self.assertEqual(bus['dailyDepartures'], 2)

    def test_text_query_ignored(self):
        result = search_buses(self.repo, params(directional=True, query='nothing-matches',
                                                **{'from': 'Galle', 'to': 'Matara'}))
        self.assertEqual([bus['licenseNo'] for bus in result['buses']], ['ND-2222'])

    def test_filters_apply(self):
        result = search_buses(self.repo, params(directional=True, verifiedOnly=True,
                                                **{'from': 'Colombo', 'to': 'Kandy'}))
        self.assertEqual(result['buses'], [])

    def test_requires_both_endpoints(self):
        with self.assertRaises(BadRequest):
            search_buses(self.repo, params(directional=True, **{'from': 'Colombo'}))

    def test_route_query_runs_directionally(self):
        result = search_buses(self.repo, params(query='kandy to colombo'))
        self.assertTrue(result['filters']['directional'])
        self.assertEqual(result['buses'][0]['direction'], 'return')

    def test_company_name_with_to_still_found(self):
        basics = dict(COLOMBO_KANDY, licenseNo='NF-4444', busNumber='NF-4444',
                      companyName='Back to Basics Travels')
        repo = InMemoryBusRepository([COLOMBO_KANDY, basics])
        result = search_buses(repo, search_params({'q': 'back to basics'}))
        self.assertEqual([bus['licenseNo'] for bus in result['buses']], ['NF-4444'])
        self.assertEqual(result['totalFound'], 1)
        self.assertFalse(result['filters']['directional'])
        self.assertIsNone(result['filters']['from'])

    def test_no_cap(self):
        repo = InMemoryBusRepository([
            dict(COLOMBO_KANDY, licenseNo=f'NA-{i:04d}', busNumber=f'NA-{i:04d}') for i in range(60)
        ])
        result = search_buses(repo, params(directional=True, **{'from': 'Colombo', 'to': 'Kandy'}))
        self.assertEqual(result['count'], 60)


if __name__ == '__main__':
    unittest.main()
