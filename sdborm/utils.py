import re, sys

from inspect import isfunction
from functools import update_wrapper
from threading import local as localbase

from decorator import decorator as _decorator

from sdborm import options

def _improved_decorator(caller, func):
    if isfunction(func):
        return _decorator(caller, func)
    def sdborm_wrapper(*args, **kwargs):
        return caller(func, *args, **kwargs)
    return sdborm_wrapper

def decorator(caller, func=None):
    if func is not None:
        return _improved_decorator(caller, func)
    def new_decorator(func):
        return _improved_decorator(caller, func)
    if isfunction(caller):
        update_wrapper(new_decorator, caller)
    return new_decorator

@decorator
def cut_traceback(func, *args, **kwargs):
    if not options.CUT_TRACEBACK:
        return func(*args, **kwargs)

    try: return func(*args, **kwargs)
    except AssertionError: raise
    except Exception:
        exc_type, exc, tb = sys.exc_info()
        last_sdborm_tb = None
        try:
            while tb.tb_next:
                module_name = tb.tb_frame.f_globals['__name__']
                if module_name == 'sdborm' or (module_name is not None
                                               and module_name.startswith('sdborm.')):
                    last_sdborm_tb = tb
                tb = tb.tb_next
            if last_sdborm_tb is None: raise
            if tb.tb_frame.f_globals.get('__name__') == 'sdborm.utils' and tb.tb_frame.f_code.co_name == 'throw':
                reraise(exc_type, exc, last_sdborm_tb)
            raise exc  # Set "sdborm.options.CUT_TRACEBACK = False" to see full traceback
        finally:
            del exc, tb, last_sdborm_tb

def reraise(exc_type, exc, tb):
    try: raise exc.with_traceback(tb)
    finally: del exc, tb

def throw(exc_type, *args, **kwargs):
    if isinstance(exc_type, Exception):
        assert not args and not kwargs
        exc = exc_type
    else: exc = exc_type(*args, **kwargs)
    exc.__cause__ = None
    try: raise exc
    finally: del exc

_ident_re = re.compile(r'^[A-Za-z_]\w*\Z')

def is_ident(string):
    'is_ident(string) -> bool'
    return bool(_ident_re.match(string))

def import_module(name):
    "import_module('a.b.c') -> <module a.b.c>"
    mod = sys.modules.get(name)
    if mod is not None: return mod
    mod = __import__(name)
    components = name.split('.')
    for comp in components[1:]: mod = getattr(mod, comp)
    return mod

def import_object(path):
    "import_object('a.b.C') -> <class a.b.C>"
    module_name, _, name = path.rpartition('.')
    if not module_name or not is_ident(name): raise ImportError('Incorrect object path: %r' % path)
    return getattr(import_module(module_name), name)
