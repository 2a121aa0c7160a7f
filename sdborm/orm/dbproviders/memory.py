"""Process-local attribute store that behaves like SimpleDB.

Items keep insertion order. Select expressions are evaluated against the
stored values the way SimpleDB does it: values are compared as strings, a
predicate on a multi-valued attribute holds if it holds for any value (or for
every value with ``every(attr)``), and LIMIT is the page size of a paged
result. Reads are always consistent.
"""

import re, operator
from collections import OrderedDict

from sdborm import options
from sdborm.orm.sqlparsing import ParseFailure, ITEM_NAME, parse_select
from sdborm.orm.storeprovider import StoreProvider, SelectResult, ProgrammingError, DataError, \
     wrap_store_exceptions, attribute_list, collapse_values

class MemoryStoreError(Exception):
    def __init__(exc, code, message):
        Exception.__init__(exc, message)
        exc.code = code

MAX_BATCH_ITEMS = 25

comparison_operators = {
    '=': operator.eq, '!=': operator.ne,
    '<': operator.lt, '<=': operator.le,
    '>': operator.gt, '>=': operator.ge,
    }

like_re_cache = {}

def like_re(pattern):
    regex = like_re_cache.get(pattern)
    if regex is None:
        regex = like_re_cache[pattern] = re.compile(
            '.*'.join(re.escape(part) for part in pattern.split('%')) + r'\Z', re.DOTALL)
    return regex

def operand_values(operand, item_name, item):
    if operand[0] == 'ITEMNAME': return [ item_name ]
    return item.get(operand[1], [])

def value_test(expr):
    kind = expr[0]
    if kind == 'CMP':
        op, value = comparison_operators[expr[1]], expr[3]
        return lambda x: op(x, value)
    if kind == 'LIKE':
        regex, negated = like_re(expr[2]), expr[3]
        return lambda x: (regex.match(x) is None) == negated
    if kind == 'IN':
        choices = expr[2]
        return lambda x: x in choices
    if kind == 'BETWEEN':
        low, high = expr[2], expr[3]
        return lambda x: low <= x <= high
    assert False, kind  # pragma: no cover

def evaluate(expr, item_name, item):
    kind = expr[0]
    if kind == 'OR': return evaluate(expr[1], item_name, item) or evaluate(expr[2], item_name, item)
    if kind == 'AND': return evaluate(expr[1], item_name, item) and evaluate(expr[2], item_name, item)
    if kind == 'NOT': return not evaluate(expr[1], item_name, item)
    if kind == 'NULL':
        is_null = not operand_values(expr[1], item_name, item)
        return not is_null if expr[2] else is_null
    operand = expr[2] if kind == 'CMP' else expr[1]
    values = operand_values(operand, item_name, item)
    test = value_test(expr)
    if operand[0] == 'EVERY': return bool(values) and all(test(x) for x in values)
    return any(test(x) for x in values)

class MemoryProvider(StoreProvider):
    dialect = 'Memory'
    native_exceptions = (MemoryStoreError,)
    error_codes = {
        'NoSuchDomain': ProgrammingError,
        'MissingParameter': ProgrammingError,
        'InvalidParameterValue': DataError,
        'NumberSubmittedItemsExceeded': DataError,
        }

    def __init__(provider, domains=(), page_size=None, **kwargs):
        StoreProvider.__init__(provider, **kwargs)
        provider.domains = {}
        provider.page_size = page_size or options.SELECT_PAGE_SIZE
        for domain in domains: provider.create_domain(domain)

    def _get_domain(provider, domain):
        items = provider.domains.get(domain)
        if items is None: raise MemoryStoreError('NoSuchDomain', 'The specified domain does not exist: %s' % domain)
        return items

    def _check_item_name(provider, item_name):
        if not isinstance(item_name, str) or not item_name:
            raise MemoryStoreError('InvalidParameterValue', 'Value (%r) for parameter ItemName is invalid' % item_name)

    def _put(provider, items, item_name, attributes, replace):
        provider._check_item_name(item_name)
        pairs = attribute_list(attributes, replace)
        if not pairs: raise MemoryStoreError('MissingParameter', 'No attributes for item %s' % item_name)
        item = items.setdefault(item_name, OrderedDict())
        replaced = set()
        for name, value, replace_value in pairs:
            if replace_value and name not in replaced:
                item[name] = []
                replaced.add(name)
            values = item.setdefault(name, [])
            if value not in values: values.append(value)

    @wrap_store_exceptions
    def create_domain(provider, domain):
        provider.domains.setdefault(domain, OrderedDict())
        return True

    @wrap_store_exceptions
    def delete_domain(provider, domain):
        provider.domains.pop(domain, None)
        return True

    def list_domains(provider):
        return sorted(provider.domains)

    @wrap_store_exceptions
    def put_attributes(provider, domain, item_name, attributes, replace=False):
        provider._put(provider._get_domain(domain), item_name, attributes, replace)
        return True

    @wrap_store_exceptions
    def batch_put_attributes(provider, domain, items, replace=True):
        domain_items = provider._get_domain(domain)
        if len(items) > MAX_BATCH_ITEMS: raise MemoryStoreError('NumberSubmittedItemsExceeded',
            'Too many items in a single call. Up to %d items per call allowed.' % MAX_BATCH_ITEMS)
        for item_name, attributes in items.items():
            provider._put(domain_items, item_name, attributes, replace)
        return True

    @wrap_store_exceptions
    def get_attributes(provider, domain, item_name, consistent_read=False):
        provider._check_item_name(item_name)
        item = provider._get_domain(domain).get(item_name)
        if not item: return {}
        return collapse_values((name, value) for name, values in item.items() for value in values)

    @wrap_store_exceptions
    def delete_attributes(provider, domain, item_name):
        provider._check_item_name(item_name)
        provider._get_domain(domain).pop(item_name, None)
        return True

    @wrap_store_exceptions
    def batch_delete_attributes(provider, domain, item_names):
        items = provider._get_domain(domain)
        if not item_names: raise MemoryStoreError('MissingParameter', 'No items to delete')
        if len(item_names) > MAX_BATCH_ITEMS: raise MemoryStoreError('NumberSubmittedItemsExceeded',
            'Too many items in a single call. Up to %d items per call allowed.' % MAX_BATCH_ITEMS)
        for item_name in item_names: items.pop(item_name, None)
        return True

    def select(provider, query, consistent_read=False, next_token=None):
        try: select = parse_select(query)
        except ParseFailure as e: return SelectResult.failed('Invalid query expression: %s' % e)
        items = provider.domains.get(select.domain)
        if items is None: return SelectResult.failed('The specified domain does not exist.')
        limit = select.limit or provider.page_size
        if not 0 < limit <= options.SELECT_MAX_LIMIT:
            return SelectResult.failed('The specified limit %d is not valid.' % limit)
        try: offset = int(next_token or 0)
        except ValueError: return SelectResult.failed('The specified next token is not valid.')

        matches = [ (item_name, item) for item_name, item in items.items()
                    if select.where is None or evaluate(select.where, item_name, item) ]
        if select.output == 'count(*)':
            return SelectResult(OrderedDict([ ('Domain', OrderedDict([ ('Count', str(len(matches))) ])) ]))
        if select.order_by is not None:
            matches = provider._sort(matches, select.order_by, select.descending)

        page = matches[offset:offset+limit]
        next_token = str(offset + limit) if offset + limit < len(matches) else None
        result = OrderedDict()
        for item_name, item in page:
            if select.output == '*': names = list(item)
            elif select.output == ITEM_NAME: names = []
            else: names = [ name for name in select.output if name in item ]
            result[item_name] = collapse_values((name, value) for name in names for value in item[name])
        return SelectResult(result, next_token)

    def _sort(provider, matches, order_by, descending):
        if order_by == ITEM_NAME: key = lambda pair: pair[0]
        else:
            matches = [ pair for pair in matches if pair[1].get(order_by) ]
            key = lambda pair: min(pair[1][order_by])
        return sorted(matches, key=key, reverse=descending)

provider_cls = MemoryProvider
