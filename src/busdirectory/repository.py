import copy

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from busdirectory.config import (AWS_REGION, BUS_STORE, BUS_TABLE_NAME, INDEX_QUERY_LIMIT,
                                 SCAN_LIMIT, VOTES_TABLE_NAME)
from busdirectory.errors import Conflict, IndexUnavailable, NotFound
from busdirectory.records import as_count, now_iso, to_dynamo
from busdirectory.votes import vote_id, vote_transition

# GSI name -> partition key attribute
INDEXES = {
    'CompanyIndex': 'companyName',
    'RouteIndex': 'route',
    'TypeIndex': 'busType',
}


class BusRepository:
    """Storage for bus records and per-user votes."""

    def get(self, license_no):
        raise NotImplementedError

    def list(self, limit, last_key=None):
        """Returns (items, next_key); next_key is None on the last page."""
        raise NotImplementedError

    def create(self, item):
        raise NotImplementedError

    def update(self, license_no, fields):
        raise NotImplementedError

    def increment_legacy_votes(self, license_no):
        raise NotImplementedError

    def scan_all(self, limit=SCAN_LIMIT):
        raise NotImplementedError

    def query_by_index(self, index_name, value, limit=INDEX_QUERY_LIMIT):
        raise NotImplementedError

    def get_vote(self, license_no, user):
        raise NotImplementedError

    def apply_vote(self, license_no, user, vote_type):
        """Records a vote and moves the bus counters.

        Two separate writes and no transaction: concurrent votes by the same
        user are last-write-wins.
        """
        raise NotImplementedError


def _vote_result(next_vote, verify_delta, report_delta, verify_count, report_count):
    return {
        'verifyDelta': verify_delta,
        'reportDelta': report_delta,
        'verifyCount': verify_count,
        'reportCount': report_count,
        'userVote': next_vote
    }


class DynamoBusRepository(BusRepository):

    def __init__(self, bus_table, vote_table):
        self.bus_table = bus_table
        self.vote_table = vote_table

    def get(self, license_no):
        response = self.bus_table.get_item(Key={'licenseNo': str(license_no)})
        return response.get('Item')

    def list(self, limit, last_key=None):
        params = {'Limit': limit}
        if last_key:
            params['ExclusiveStartKey'] = last_key
        response = self.bus_table.scan(**params)
        return response.get('Items', []), response.get('LastEvaluatedKey')

    def create(self, item):
        try:
            self.bus_table.put_item(
                Item=to_dynamo(item),
                ConditionExpression='attribute_not_exists(licenseNo)'
            )
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
                raise Conflict("Bus with this license number already exists") from e
            raise
        return item

    def update(self, license_no, fields):
        names, values, assignments = {}, {}, []
        for i, (name, value) in enumerate(fields.items()):
            names[f'#attr{i}'] = name
            values[f':val{i}'] = value
            assignments.append(f'#attr{i} = :val{i}')

        response = self.bus_table.update_item(
            Key={'licenseNo': str(license_no)},
            UpdateExpression='SET ' + ', '.join(assignments),
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=to_dynamo(values),
            ReturnValues='ALL_NEW'
        )
        return response.get('Attributes')

    def increment_legacy_votes(self, license_no):
        response = self.bus_table.update_item(
            Key={'licenseNo': str(license_no)},
            UpdateExpression='ADD #votes :inc SET #updated = :updated',
            ExpressionAttributeNames={'#votes': 'verifiedVotes', '#updated': 'updatedAt'},
            ExpressionAttributeValues={':inc': 1, ':updated': now_iso()},
            ReturnValues='ALL_NEW'
        )
        return response.get('Attributes')

    def scan_all(self, limit=SCAN_LIMIT):
        response = self.bus_table.scan(Limit=limit)
        items = response.get('Items', [])

        while 'LastEvaluatedKey' in response and len(items) < limit:
            response = self.bus_table.scan(
                Limit=limit - len(items),
                ExclusiveStartKey=response['LastEvaluatedKey']
            )
            items.extend(response.get('Items', []))
        return items[:limit]

    def query_by_index(self, index_name, value, limit=INDEX_QUERY_LIMIT):
        try:
            response = self.bus_table.query(
                IndexName=index_name,
                KeyConditionExpression=Key(INDEXES[index_name]).eq(value),
                Limit=limit
            )
        except ClientError as e:
            raise IndexUnavailable(f"{index_name} query failed: {e}") from e
        return response.get('Items', [])

    def get_vote(self, license_no, user):
        response = self.vote_table.get_item(Key={'voteId': vote_id(license_no, user)})
        item = response.get('Item')
        return item.get('voteType') if item else None

    def apply_vote(self, license_no, user, vote_type):
        bus = self.get(license_no)
        if not bus:
            raise NotFound("Bus not found")
        current = self.get_vote(license_no, user)
        next_vote, verify_delta, report_delta = vote_transition(current, vote_type)

        key = {'voteId': vote_id(license_no, user)}
        if next_vote:
            self.vote_table.put_item(Item={
                **key,
                'licenseNo': str(license_no),
                'userEmail': user,
                'voteType': next_vote,
                'createdAt': now_iso()
            })
        else:
            self.vote_table.delete_item(Key=key)

        verify_count = max(0, as_count(bus.get('verifyCount')) + verify_delta)
        report_count = max(0, as_count(bus.get('reportCount')) + report_delta)

        self.bus_table.update_item(
            Key={'licenseNo': str(license_no)},
            UpdateExpression='SET verifyCount = :v, reportCount = :r, updatedAt = :u',
            ExpressionAttributeValues={':v': verify_count, ':r': report_count, ':u': now_iso()}
        )
        return _vote_result(next_vote, verify_delta, report_delta, verify_count, report_count)


class InMemoryBusRepository(BusRepository):
    """Dict-backed store for local runs and tests.

    Lives inside one process and is not thread-safe; everything is lost on
    restart.
    """

    def __init__(self, buses=None):
        self.buses = {}
        self.votes = {}
        for bus in buses or []:
            self.buses[bus['licenseNo']] = copy.deepcopy(bus)

    def get(self, license_no):
        bus = self.buses.get(str(license_no))
        return copy.deepcopy(bus) if bus else None

    def list(self, limit, last_key=None):
        keys = list(self.buses)
        start = 0
        if last_key and last_key.get('licenseNo') in self.buses:
            start = keys.index(last_key['licenseNo']) + 1
        page = keys[start:start + limit]
        next_key = {'licenseNo': page[-1]} if page and start + limit < len(keys) else None
        return [copy.deepcopy(self.buses[k]) for k in page], next_key

    def create(self, item):
        if item['licenseNo'] in self.buses:
            raise Conflict("Bus with this license number already exists")
        self.buses[item['licenseNo']] = copy.deepcopy(item)
        return item

    def update(self, license_no, fields):
        bus = self.buses.get(str(license_no))
        if bus is None:
            return None
        bus.update(copy.deepcopy(fields))
        return copy.deepcopy(bus)

    def increment_legacy_votes(self, license_no):
        bus = self.buses.get(str(license_no))
        if bus is None:
            return None
        bus['verifiedVotes'] = as_count(bus.get('verifiedVotes')) + 1
        bus['updatedAt'] = now_iso()
        return copy.deepcopy(bus)

    def scan_all(self, limit=SCAN_LIMIT):
        return [copy.deepcopy(bus) for bus in list(self.buses.values())[:limit]]

    def query_by_index(self, index_name, value, limit=INDEX_QUERY_LIMIT):
        if index_name not in INDEXES:
            raise IndexUnavailable(f"No index named {index_name}")
        attribute = INDEXES[index_name]
        matches = [bus for bus in self.buses.values() if bus.get(attribute) == value]
        return copy.deepcopy(matches[:limit])

    def get_vote(self, license_no, user):
        record = self.votes.get(vote_id(license_no, user))
        return record['voteType'] if record else None

    def apply_vote(self, license_no, user, vote_type):
        bus = self.buses.get(str(license_no))
        if bus is None:
            raise NotFound("Bus not found")
        current = self.get_vote(license_no, user)
        next_vote, verify_delta, report_delta = vote_transition(current, vote_type)

        key = vote_id(license_no, user)
        if next_vote:
            self.votes[key] = {
                'voteId': key,
                'licenseNo': str(license_no),
                'userEmail': user,
                'voteType': next_vote,
                'createdAt': now_iso()
            }
        else:
            self.votes.pop(key, None)

        bus['verifyCount'] = max(0, as_count(bus.get('verifyCount')) + verify_delta)
        bus['reportCount'] = max(0, as_count(bus.get('reportCount')) + report_delta)
        bus['updatedAt'] = now_iso()
        return _vote_result(next_vote, verify_delta, report_delta,
                            bus['verifyCount'], bus['reportCount'])


def get_repository(store=None):
    store = store or BUS_STORE
    if store == 'memory':
        print("Using in-memory bus store (single process, not persisted).")
        return InMemoryBusRepository()
    if store != 'dynamodb':
        raise ValueError(f"Unknown BUS_STORE: {store}")

    dynamodb = boto3.resource('dynamodb', region_name=AWS_REGION)
    return DynamoBusRepository(dynamodb.Table(BUS_TABLE_NAME), dynamodb.Table(VOTES_TABLE_NAME))
