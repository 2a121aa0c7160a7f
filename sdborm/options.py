CUT_TRACEBACK = True

# SimpleDB connection options:
SDB_REGION = 'ap-southeast-1'
SDB_ENDPOINT_URL = None  # boto3 default endpoint for the region

# item key generation options:
KEY_GENERATION_ATTEMPTS = 20
MAX_ITEM_KEY = 2**31 - 1

# statement emulation options:
DELETE_BATCH_SIZE = 25  # SimpleDB accepts at most 25 items per batch request

# select options (memory provider mimics SimpleDB paging):
SELECT_PAGE_SIZE = 100
SELECT_MAX_LIMIT = 2500
