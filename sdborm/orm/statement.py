"""Prepared statements emulated on top of an attribute store.

SimpleDB understands only its own SELECT dialect. A Statement accepts the
usual INSERT, UPDATE and DELETE statements too and turns them into
put/delete attribute calls:

    stmt = db.prepare('INSERT INTO cars (brand, doors) VALUES (:brand, :doors)')
    stmt.bind_value(':brand', 'Ford')
    stmt.bind_param(':doors', lambda: car.doors)  # evaluated at execute()
    stmt.execute()
    db.last_insert_id  # generated item name

SELECT statements are only bound by execute(); rows are read with
fetch_into() and fetch_all_into().

Limitations:

- no joins, subqueries or aliases (backticks and aliases of the target
  class are stripped)
- all values must be quoted literals or bound placeholders
- writes are not atomic, a failure after a partial write is not undone
"""

import re
from collections import OrderedDict
from random import randint

from sdborm import options
from sdborm.orm.core import UnknownQueryType, FetchFailure, KeyGenerationExhausted, local, log_sql, log_orm
from sdborm.orm.sqlparsing import parse_insert, parse_update, parse_delete, ITEM_NAME, \
     write_literal_pattern, select_literal_pattern
from sdborm.orm.binding import escape_value, escape_select_value, decode_value, value_to_str, \
     normalize_placeholder, replace_placeholder, find_placeholders, select_predicate
from sdborm.orm.materializing import resolve_target, read_consistency, hydrate, materialize
from sdborm.utils import cut_traceback, throw

first_word_re = re.compile(r'\s*(\w+)')

def simplify_query(sql, class_name=None, backslash_escapes=True):
    "Removes backticks, and the table alias the model layer adds for joins, outside of literals"
    removable = [ 'AS `%s`' % class_name, '`%s`.' % class_name ] if class_name else []
    removable.append('`')
    literal = write_literal_pattern if backslash_escapes else select_literal_pattern
    regex = re.compile('(%s)|%s' % (literal, '|'.join(map(re.escape, removable))), re.DOTALL)
    return regex.sub(lambda match: match.group(1) or '', sql)

def generate_item_name(provider, domain, attempts=None, max_key=None):
    """Picks a random item name that is not used in the domain yet.

    There is no auto increment in SimpleDB. The chance of a collision grows
    with the size of the domain, so this is only suitable for domains much
    smaller than MAX_ITEM_KEY.
    """
    if attempts is None: attempts = options.KEY_GENERATION_ATTEMPTS
    if max_key is None: max_key = options.MAX_ITEM_KEY
    for i in range(attempts):
        item_name = str(randint(1, max_key))
        if not provider.get_attributes(domain, item_name, consistent_read=True):
            return item_name
        if local.debug: log_orm('Item name %s is already used in domain %s' % (item_name, domain))
    throw(KeyGenerationExhausted, domain, attempts)

class Statement(object):
    def __init__(stmt, database, sql):
        stmt.database = database
        stmt.query_string = sql
        stmt.binds = OrderedDict()
        stmt._query_type = None
    def __str__(stmt):
        return stmt.query_string
    def __repr__(stmt):
        return '<Statement %r>' % stmt.query_string
    def query_type(stmt):
        if stmt._query_type is None:
            match = first_word_re.match(stmt.query_string)
            stmt._query_type = match.group(1).upper() if match is not None else ''
        return stmt._query_type
    @cut_traceback
    def bind_value(stmt, placeholder, value):
        value = value_to_str(value)
        backslash_escapes = stmt.query_type() != 'SELECT'
        value = escape_value(value) if backslash_escapes else escape_select_value(value)
        stmt.query_string = replace_placeholder(stmt.query_string, normalize_placeholder(placeholder),
                                                "'%s'" % value, backslash_escapes)
        return stmt
    @cut_traceback
    def bind_param(stmt, placeholder, provider):
        stmt.binds[normalize_placeholder(placeholder)] = provider
        return stmt
    @cut_traceback
    def bind_object(stmt, obj, params=None):
        if params is None: params = stmt.placeholders()
        for name in params:
            name = name.lstrip(':')
            value = getattr(obj, 'id', None) if name == ITEM_NAME else getattr(obj, name)
            stmt.bind_value(':' + name, value)
        return stmt
    @cut_traceback
    def placeholders(stmt):
        return find_placeholders(stmt.query_string, stmt.query_type() != 'SELECT')
    def _bind(stmt):
        binds, stmt.binds = stmt.binds, OrderedDict()
        for placeholder, provider in binds.items():
            stmt.bind_value(placeholder, provider() if callable(provider) else provider)

    @cut_traceback
    def execute(stmt, values=None):
        if values:
            if hasattr(values, 'items'): values = values.items()
            for placeholder, value in values: stmt.bind_value(placeholder, value)
        stmt._bind()
        query_type = stmt.query_type()
        if query_type == 'INSERT': return stmt._emulate_insert()
        if query_type == 'UPDATE': return stmt._emulate_update()
        if query_type == 'DELETE': return stmt._emulate_delete()
        if query_type == 'SELECT': return True
        throw(UnknownQueryType, 'Unknown query type %r in query: %s' % (query_type, stmt.query_string))
    def _emulate_insert(stmt):
        stmt._simplify_query()
        query = parse_insert(stmt.query_string)
        provider = stmt.database.provider
        if query.item_name is not None: item_name = decode_value(query.item_name)
        else: item_name = generate_item_name(provider, query.domain)
        stmt.database.last_insert_id = item_name
        if local.debug: log_sql('PUT %s[%s]' % (query.domain, item_name), query.attributes)
        return provider.put_attributes(query.domain, item_name, query.attributes)
    def _emulate_update(stmt):
        stmt._simplify_query()
        query = parse_update(stmt.query_string)
        item_name = decode_value(query.item_name)
        if local.debug: log_sql('PUT REPLACE %s[%s]' % (query.domain, item_name), query.attributes)
        return stmt.database.provider.put_attributes(query.domain, item_name, query.attributes, replace=True)
    def _emulate_delete(stmt):
        stmt._simplify_query()
        query = parse_delete(stmt.query_string)
        provider = stmt.database.provider
        if query.item_name is not None:
            item_name = decode_value(query.item_name)
            if local.debug: log_sql('DELETE %s[%s]' % (query.domain, item_name))
            return provider.delete_attributes(query.domain, item_name)
        sql = 'SELECT %s FROM %s' % (ITEM_NAME, query.domain)
        if query.predicate: sql += ' WHERE %s' % select_predicate(query.predicate)
        sql += ' LIMIT %d' % options.DELETE_BATCH_SIZE
        result = stmt._select(sql, consistent_read=True)
        item_names = result.item_names()
        if not item_names: return True
        if local.debug: log_sql('BATCH DELETE %s' % query.domain, item_names)
        return provider.batch_delete_attributes(query.domain, item_names)
    def _simplify_query(stmt, class_name=None):
        stmt.query_string = simplify_query(stmt.query_string, class_name, stmt.query_type() != 'SELECT')
    def _select(stmt, sql, consistent_read=False, next_token=None):
        if local.debug: log_sql(sql, [ next_token ] if next_token else None)
        result = stmt.database.provider.select(sql, consistent_read, next_token)
        if not result.ok:
            throw(FetchFailure, '%s Query: %s' % (result.error_message, sql), sql)
        return result

    @cut_traceback
    def fetch_into(stmt, target):
        target = resolve_target(target)
        stmt._bind()
        stmt._simplify_query(target.__name__)
        result = stmt._select(stmt.query_string, read_consistency(target))
        if not len(result): return False
        item_name = result.item_names()[0]
        return hydrate(target, item_name, result[item_name])
    @cut_traceback
    def fetch_all_into(stmt, target, limit=None):
        target = resolve_target(target)
        stmt._bind()
        stmt._simplify_query(target.__name__)
        consistent_read = read_consistency(target)
        items = OrderedDict()
        next_token = None
        while True:
            result = stmt._select(stmt.query_string, consistent_read, next_token)
            items.update(result.items)
            if limit is not None and len(items) >= limit:
                items = OrderedDict(list(items.items())[:limit])
                break
            next_token = result.next_token
            if not next_token: break
        return materialize(target, items)
