from collections import OrderedDict

from sdborm.utils import decorator, throw

class DBException(Exception):
    def __init__(exc, original_exc, *args):
        args = args or getattr(original_exc, 'args', ())
        Exception.__init__(exc, *args)
        exc.original_exc = original_exc

# Exception inheritance layout of store providers (mirrors DBAPI 2.0):
#
# Exception
#   Warning
#   Error
#     InterfaceError
#     DatabaseError
#       DataError
#       OperationalError
#       IntegrityError
#       InternalError
#       ProgrammingError
#       NotSupportedError

class Warning(DBException): pass
class Error(DBException): pass
class   InterfaceError(Error): pass
class   DatabaseError(Error): pass
class     DataError(DatabaseError): pass
class     OperationalError(DatabaseError): pass
class     IntegrityError(DatabaseError): pass
class     InternalError(DatabaseError): pass
class     ProgrammingError(DatabaseError): pass
class     NotSupportedError(DatabaseError): pass

@decorator
def wrap_store_exceptions(func, provider, *args, **kwargs):
    try: return func(provider, *args, **kwargs)
    except DBException: raise
    except provider.native_exceptions as e:
        exc_class = provider.error_codes.get(provider.get_error_code(e), DatabaseError)
        raise exc_class(e, str(e))

class SelectResult(object):
    __slots__ = 'items', 'next_token', 'ok', 'error_message'
    def __init__(result, items=None, next_token=None, ok=True, error_message=None):
        result.items = items if items is not None else OrderedDict()
        result.next_token = next_token
        result.ok = ok
        result.error_message = error_message
    @classmethod
    def failed(cls, error_message):
        return cls(ok=False, error_message=error_message)
    def item_names(result):
        return list(result.items)
    def __len__(result):
        return len(result.items)
    def __iter__(result):
        return iter(result.items)
    def __getitem__(result, item_name):
        return result.items[item_name]
    def __repr__(result):
        if not result.ok: return '<SelectResult failed: %s>' % result.error_message
        return '<SelectResult %d items%s>' % (len(result.items), ', more' if result.next_token else '')

class StoreProvider(object):
    dialect = None
    native_exceptions = ()
    error_codes = {}

    def __init__(provider, **kwargs):
        if kwargs: throw(TypeError, 'Unexpected provider options: %s' % ', '.join(sorted(kwargs)))

    def get_error_code(provider, exc):
        return getattr(exc, 'code', None)

    def create_domain(provider, domain):
        throw(NotImplementedError)

    def delete_domain(provider, domain):
        throw(NotImplementedError)

    def put_attributes(provider, domain, item_name, attributes, replace=False):
        throw(NotImplementedError)

    def batch_put_attributes(provider, domain, items, replace=True):
        throw(NotImplementedError)

    def get_attributes(provider, domain, item_name, consistent_read=False):
        throw(NotImplementedError)

    def delete_attributes(provider, domain, item_name):
        throw(NotImplementedError)

    def batch_delete_attributes(provider, domain, item_names):
        throw(NotImplementedError)

    def select(provider, query, consistent_read=False, next_token=None):
        throw(NotImplementedError)

    def disconnect(provider):
        pass

def attribute_list(attributes, replace=False):
    "attribute_list({'a': ['1', '2']}) -> [('a', '1', False), ('a', '2', False)]"
    result = []
    for name, value in attributes.items():
        values = value if isinstance(value, (list, tuple)) else [ value ]
        for x in values:
            result.append((name, '' if x is None else str(x), replace))
    return result

def collapse_values(pairs):
    "collapse_values([('a', '1'), ('a', '2'), ('b', '3')]) -> {'a': ['1', '2'], 'b': '3'}"
    result = OrderedDict()
    for name, value in pairs:
        current = result.get(name)
        if current is None: result[name] = value
        elif isinstance(current, list): current.append(value)
        else: result[name] = [ current, value ]
    return result
