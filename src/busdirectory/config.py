import os

BUS_TABLE_NAME = os.environ.get('BUS_TABLE_NAME', 'buses')
VOTES_TABLE_NAME = os.environ.get('VOTES_TABLE_NAME', 'bus_votes')
AWS_REGION = os.environ.get('AWS_REGION', 'ap-south-1')
CORS_ORIGIN = os.environ.get('CORS_ORIGIN', '*')
UPLOAD_BUCKET = os.environ.get('UPLOAD_BUCKET', '')
UPLOAD_URL_EXPIRES = int(os.environ.get('UPLOAD_URL_EXPIRES', '300'))

# 'dynamodb' in AWS, 'memory' for local runs and tests
BUS_STORE = os.environ.get('BUS_STORE', 'dynamodb')

SCAN_LIMIT = 100
INDEX_QUERY_LIMIT = 50
SEARCH_RESULT_CAP = 50
VERIFIED_THRESHOLD = 3
