from collections import OrderedDict

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sdborm import options
from sdborm.orm.storeprovider import StoreProvider, SelectResult, InterfaceError, DataError, \
     OperationalError, IntegrityError, ProgrammingError, wrap_store_exceptions, attribute_list, collapse_values

def attributes_param(attributes, replace=False):
    return [ dict(Name=name, Value=value, Replace=replace)
             for name, value, replace in attribute_list(attributes, replace) ]

def response_ok(response):
    return response.get('ResponseMetadata', {}).get('HTTPStatusCode', 200) == 200

def collapse_attributes(attributes):
    return collapse_values((attr['Name'], attr['Value']) for attr in attributes)

class SDBProvider(StoreProvider):
    dialect = 'SimpleDB'
    native_exceptions = (ClientError, BotoCoreError)
    error_codes = {
        'AuthFailure': InterfaceError,
        'AccessFailure': InterfaceError,
        'InvalidClientTokenId': InterfaceError,
        'SignatureDoesNotMatch': InterfaceError,
        'OptInRequired': InterfaceError,
        'ConnectionError': OperationalError,
        'ServiceUnavailable': OperationalError,
        'RequestTimeout': OperationalError,
        'InternalError': OperationalError,
        'NoSuchDomain': ProgrammingError,
        'MissingParameter': ProgrammingError,
        'InvalidQueryExpression': ProgrammingError,
        'InvalidNextToken': ProgrammingError,
        'InvalidParameterValue': DataError,
        'InvalidNumberValueTests': DataError,
        'NumberSubmittedItemsExceeded': DataError,
        'NumberSubmittedAttributesExceeded': DataError,
        'NumberItemAttributesExceeded': DataError,
        'NumberDomainAttributesExceeded': DataError,
        'NumberDomainBytesExceeded': DataError,
        'DuplicateItemName': IntegrityError,
        'ConditionalCheckFailed': IntegrityError,
        'AttributeDoesNotExist': IntegrityError,
        }

    def __init__(provider, client=None, region_name=None, endpoint_url=None, **kwargs):
        StoreProvider.__init__(provider)
        if client is None:
            client = boto3.client('sdb', region_name=region_name or options.SDB_REGION,
                                  endpoint_url=endpoint_url or options.SDB_ENDPOINT_URL, **kwargs)
        elif region_name or endpoint_url or kwargs:
            raise TypeError('Connection options cannot be used together with an existing client')
        provider.client = client

    def get_error_code(provider, exc):
        if isinstance(exc, ClientError): return exc.response.get('Error', {}).get('Code')
        return 'ConnectionError'

    @wrap_store_exceptions
    def create_domain(provider, domain):
        return response_ok(provider.client.create_domain(DomainName=domain))

    @wrap_store_exceptions
    def delete_domain(provider, domain):
        return response_ok(provider.client.delete_domain(DomainName=domain))

    @wrap_store_exceptions
    def put_attributes(provider, domain, item_name, attributes, replace=False):
        response = provider.client.put_attributes(
            DomainName=domain, ItemName=item_name, Attributes=attributes_param(attributes, replace))
        return response_ok(response)

    @wrap_store_exceptions
    def batch_put_attributes(provider, domain, items, replace=True):
        items = [ dict(Name=item_name, Attributes=attributes_param(attributes, replace))
                  for item_name, attributes in items.items() ]
        return response_ok(provider.client.batch_put_attributes(DomainName=domain, Items=items))

    @wrap_store_exceptions
    def get_attributes(provider, domain, item_name, consistent_read=False):
        response = provider.client.get_attributes(
            DomainName=domain, ItemName=item_name, ConsistentRead=consistent_read)
        return collapse_attributes(response.get('Attributes', []))

    @wrap_store_exceptions
    def delete_attributes(provider, domain, item_name):
        return response_ok(provider.client.delete_attributes(DomainName=domain, ItemName=item_name))

    @wrap_store_exceptions
    def batch_delete_attributes(provider, domain, item_names):
        items = [ dict(Name=item_name) for item_name in item_names ]
        return response_ok(provider.client.batch_delete_attributes(DomainName=domain, Items=items))

    @wrap_store_exceptions
    def select(provider, query, consistent_read=False, next_token=None):
        params = dict(SelectExpression=query, ConsistentRead=consistent_read)
        if next_token: params['NextToken'] = next_token
        try: response = provider.client.select(**params)
        except ClientError as e:
            error = e.response.get('Error', {})
            return SelectResult.failed(error.get('Message') or error.get('Code') or str(e))
        items = OrderedDict((item['Name'], collapse_attributes(item.get('Attributes', [])))
                            for item in response.get('Items', []))
        return SelectResult(items, response.get('NextToken'))

provider_cls = SDBProvider
