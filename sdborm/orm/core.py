import logging

from sdborm import options
from sdborm.orm.sqlparsing import ParseFailure, ITEM_NAME
from sdborm.orm.binding import decode_value
from sdborm.orm.storeprovider import (
    StoreProvider, SelectResult, DBException, Warning, Error, InterfaceError, DatabaseError, DataError,
    OperationalError, IntegrityError, InternalError, ProgrammingError, NotSupportedError
    )
from sdborm.utils import localbase, cut_traceback, throw, import_module, is_ident

__all__ = [
    'DBException', 'Warning', 'Error', 'InterfaceError', 'DatabaseError', 'DataError', 'OperationalError',
    'IntegrityError', 'InternalError', 'ProgrammingError', 'NotSupportedError',

    'OrmError', 'BindingError', 'MappingError', 'UnknownQueryType', 'ParseFailure', 'ClassNotFound',
    'FetchFailure', 'KeyGenerationExhausted',

    'Database', 'Model', 'SelectResult', 'sql_debug', 'set_sql_debug'
]

suppress_debug_change = False

def sql_debug(value):
    if not suppress_debug_change:
        local.debug = value

def set_sql_debug(debug=True, show_values=None):
    if not suppress_debug_change:
        local.debug = debug
        local.show_values = show_values

orm_logger = logging.getLogger('sdborm.orm')
sql_logger = logging.getLogger('sdborm.orm.sql')

orm_log_level = logging.INFO

def log_orm(msg):
    if orm_logger.hasHandlers():
        orm_logger.log(orm_log_level, msg)
    else:
        print(msg)

def log_sql(sql, arguments=None):
    if sql_logger.hasHandlers():
        if local.show_values and arguments:
            sql = '%s\n%s' % (sql, format_arguments(arguments))
        sql_logger.log(orm_log_level, sql)
    else:
        if (local.show_values is None or local.show_values) and arguments:
            sql = '%s\n%s' % (sql, format_arguments(arguments))
        print(sql, end='\n\n')

def format_arguments(arguments):
    if isinstance(arguments, dict):
        return '{%s}' % ', '.join('%s:%s' % (repr(key), repr(val)) for key, val in sorted(arguments.items()))
    return '[%s]' % ', '.join(map(repr, arguments))

class Local(localbase):
    def __init__(local):
        local.debug = False
        local.show_values = None

local = Local()

class OrmError(Exception): pass

class BindingError(OrmError): pass
class MappingError(OrmError): pass

class UnknownQueryType(OrmError): pass
class ClassNotFound(OrmError): pass

class FetchFailure(OrmError):
    def __init__(exc, msg, query=None):
        OrmError.__init__(exc, msg)
        exc.query = query

class KeyGenerationExhausted(OrmError):
    def __init__(exc, domain, attempts):
        OrmError.__init__(exc, 'Could not generate a free item name for domain %s in %d attempts'
                               % (domain, attempts))
        exc.domain = domain
        exc.attempts = attempts

known_providers = ('sdb', 'memory')

class Database(object):
    def __deepcopy__(self, memo):
        return self  # Database cannot be cloned by deepcopy()
    @cut_traceback
    def __init__(self, *args, **kwargs):
        # argument 'self' cannot be named 'database', because 'database' can be in kwargs
        self.models = {}
        self.Model = ModelMeta('Model', (Model,), {'_database_': self})
        self.last_insert_id = None
        self.provider_name = None
        self._provider = self._provider_cls = self._provider_args = None
        if args or kwargs: self._bind(*args, **kwargs)
    @cut_traceback
    def bind(self, *args, **kwargs):
        self._bind(*args, **kwargs)
    def _bind(self, *args, **kwargs):
        if self._provider is not None or self._provider_cls is not None:
            throw(BindingError, 'Database object was already bound to %s provider' % self.provider_name)
        if len(args) == 1 and not kwargs and hasattr(args[0], 'keys'):
            args, kwargs = (), args[0]
        provider = None
        if args: provider, args = args[0], args[1:]
        elif 'provider' not in kwargs: throw(TypeError, 'Database provider is not specified')
        else: provider = kwargs.pop('provider')
        if isinstance(provider, StoreProvider):
            if args or kwargs: throw(TypeError, 'Provider options cannot be used with a provider instance')
            self.provider_name = provider.dialect
            self._provider = provider
            return
        if isinstance(provider, type) and issubclass(provider, StoreProvider):
            provider_cls = provider
            self.provider_name = provider.dialect
        else:
            if not isinstance(provider, str):
                throw(TypeError, 'Provider name should be string. Got: %r' % type(provider).__name__)
            if provider not in known_providers: throw(BindingError, 'Unknown provider %s' % provider)
            self.provider_name = provider
            provider_module = import_module('sdborm.orm.dbproviders.' + provider)
            provider_cls = provider_module.provider_cls
        self._provider_cls = provider_cls
        self._provider_args = args, kwargs
    @property
    def provider(database):
        if database._provider is None:
            if database._provider_cls is None:
                throw(MappingError, 'Database object is not bound with a provider yet')
            args, kwargs = database._provider_args
            database._provider = database._provider_cls(*args, **kwargs)
            if local.debug: log_orm('CONNECT %s' % database.provider_name)
        return database._provider
    @cut_traceback
    def disconnect(database):
        provider = database._provider
        if provider is None: return
        provider.disconnect()
        if database._provider_cls is not None: database._provider = None
    @cut_traceback
    def prepare(database, sql):
        from sdborm.orm.statement import Statement
        return Statement(database, sql)
    @cut_traceback
    def execute(database, sql, values=None):
        return database.prepare(sql).execute(values)
    @cut_traceback
    def query(database, sql, consistent_read=False, next_token=None):
        if local.debug: log_sql(sql)
        return database.provider.select(sql, consistent_read, next_token)
    @cut_traceback
    def create_domain(database, domain):
        if local.debug: log_sql('CREATE DOMAIN %s' % domain)
        return database.provider.create_domain(domain)
    @cut_traceback
    def delete_domain(database, domain):
        if local.debug: log_sql('DELETE DOMAIN %s' % domain)
        return database.provider.delete_domain(domain)
    @cut_traceback
    def batch_put_attributes(database, domain, items, replace=True):
        if local.debug: log_sql('BATCH PUT %s' % domain, items)
        return database.provider.batch_put_attributes(domain, items, replace)

class ModelMeta(type):
    def __init__(model, name, bases, cls_dict):
        type.__init__(model, name, bases, cls_dict)
        if '_database_' in cls_dict: return
        database = model._database_
        if database is None: throw(MappingError,
            'Model %s must inherit from db.Model of some Database object' % name)
        domain = cls_dict.get('_domain_') or name
        if not is_ident(domain): throw(MappingError, 'Incorrect domain name for model %s: %r' % (name, domain))
        model._domain_ = domain
        database.models[name] = model
    def __repr__(model):
        return '<Model %s (domain %s)>' % (model.__name__, model._domain_)

def _placeholders(names):
    return ', '.join(ITEM_NAME if name == 'id' else name for name in names), \
           ', '.join(':' + (ITEM_NAME if name == 'id' else name) for name in names)

def _bind_conditions(conditions):
    where, values = [], {}
    for name, value in sorted(conditions.items()):
        if name == 'id': name = ITEM_NAME
        elif not is_ident(name): throw(TypeError, 'Incorrect attribute name: %r' % name)
        where.append('%s = :%s' % (name, name))
        values[':' + name] = value
    return ' AND '.join(where), values

class Model(object, metaclass=ModelMeta):
    _database_ = None
    _domain_ = None
    _consistent_read_ = False

    def __init__(obj, **kwargs):
        obj._item_name_ = None
        for name, value in kwargs.items(): setattr(obj, name, value)
    def __repr__(obj):
        return '%s[%r]' % (obj.__class__.__name__, obj._item_name_)
    @property
    def id(obj):
        return obj._item_name_
    @id.setter
    def id(obj, item_name):
        obj._set_item_name_(item_name)
    def _set_item_name_(obj, item_name):
        obj._item_name_ = None if item_name is None else str(item_name)
    @classmethod
    def enforce_read_consistency(model):
        return bool(model._consistent_read_)
    def set_values(obj, values):
        for name, value in values.items():
            if name.startswith('_') or name == 'id': continue
            if isinstance(value, list): value = [ decode_value(x) for x in value ]
            else: value = decode_value(value)
            setattr(obj, name, value)
    def to_dict(obj):
        return { name: value for name, value in obj.__dict__.items() if not name.startswith('_') }

    @classmethod
    @cut_traceback
    def find(model, item_name=None, where=None, values=None, order_by=None):
        if item_name is not None:
            if where is not None: throw(TypeError, 'item_name and where arguments cannot be used together')
            where, values = _bind_conditions(dict(id=item_name))
        stmt = model._database_.prepare(model._select_sql(where, order_by))
        stmt.execute(values)
        return stmt.fetch_into(model)
    @classmethod
    @cut_traceback
    def find_all(model, where=None, values=None, order_by=None, limit=None):
        page_size = None if limit is None else min(limit, options.SELECT_MAX_LIMIT)
        stmt = model._database_.prepare(model._select_sql(where, order_by, page_size))
        stmt.execute(values)
        return stmt.fetch_all_into(model, limit)
    @classmethod
    def find_by(model, **conditions):
        if not conditions: throw(TypeError, 'find_by() requires at least one condition')
        where, values = _bind_conditions(conditions)
        return model.find(where=where, values=values)
    @classmethod
    def find_all_by(model, **conditions):
        if not conditions: throw(TypeError, 'find_all_by() requires at least one condition')
        where, values = _bind_conditions(conditions)
        return model.find_all(where=where, values=values)
    @classmethod
    def _select_sql(model, where=None, order_by=None, limit=None):
        sql = 'SELECT * FROM %s' % model._domain_
        if where: sql += ' WHERE ' + where
        if order_by: sql += ' ORDER BY ' + order_by
        if limit is not None: sql += ' LIMIT %d' % limit
        return sql
    @classmethod
    @cut_traceback
    def destroy(model, item_name):
        stmt = model._database_.prepare('DELETE FROM %s WHERE %s = :%s' % (model._domain_, ITEM_NAME, ITEM_NAME))
        return stmt.execute({':' + ITEM_NAME: item_name})

    @cut_traceback
    def save(obj, force_insert=False):
        model = obj.__class__
        database = model._database_
        attrs = obj.to_dict()
        if not attrs: throw(OrmError, 'Cannot save %r without attributes' % obj)
        names = sorted(attrs)
        if obj._item_name_ is None or force_insert:
            if obj._item_name_ is not None: names.insert(0, 'id')
            columns, placeholders = _placeholders(names)
            stmt = database.prepare('INSERT INTO %s (%s) VALUES (%s)' % (model._domain_, columns, placeholders))
            stmt.bind_object(obj)
            result = stmt.execute()
            obj._item_name_ = database.last_insert_id
            return result
        assignments = ', '.join('%s = :%s' % (name, name) for name in names)
        stmt = database.prepare('UPDATE %s SET %s WHERE %s = :%s'
                                % (model._domain_, assignments, ITEM_NAME, ITEM_NAME))
        stmt.bind_object(obj)
        return stmt.execute()
    @cut_traceback
    def delete(obj):
        if obj._item_name_ is None: throw(OrmError, 'Cannot delete %r: it was never saved' % obj)
        return obj.__class__.destroy(obj._item_name_)
