from collections import OrderedDict

from sdborm.orm.core import ClassNotFound
from sdborm.utils import throw, import_object

class ModelCollection(object):
    "Ordered mapping of item name to model instance, iterable over the instances"
    def __init__(collection, model=None, items=()):
        collection.model = model
        collection._objects = OrderedDict(items)
    def __repr__(collection):
        name = collection.model.__name__ if collection.model is not None else 'Model'
        return '<ModelCollection of %d %s>' % (len(collection._objects), name)
    def __len__(collection):
        return len(collection._objects)
    def __iter__(collection):
        return iter(list(collection._objects.values()))
    def __contains__(collection, item_name):
        return item_name in collection._objects
    def __getitem__(collection, item_name):
        return collection._objects[item_name]
    def get(collection, item_name, default=None):
        return collection._objects.get(item_name, default)
    def keys(collection):
        return list(collection._objects.keys())
    def values(collection):
        return list(collection._objects.values())
    def items(collection):
        return list(collection._objects.items())
    def first(collection):
        for obj in collection._objects.values(): return obj
        return None
    def to_list(collection):
        return list(collection._objects.values())
    def add(collection, obj):
        collection._objects[obj.id] = obj
    def delete(collection):
        result = True
        for obj in collection.to_list():
            if not obj.delete(): result = False
        collection._objects.clear()
        return result

def resolve_target(target):
    if isinstance(target, str):
        try: target = import_object(target)
        except (ImportError, AttributeError):
            throw(ClassNotFound, 'Unknown class %s requested' % target)
    if not isinstance(target, type):
        throw(ClassNotFound, 'Unknown class %r requested' % (target,))
    return target

def read_consistency(target):
    enforce_read_consistency = getattr(target, 'enforce_read_consistency', None)
    if enforce_read_consistency is None: return False
    return bool(enforce_read_consistency())

def hydrate(target, item_name, attributes):
    obj = target()
    obj._set_item_name_(item_name)
    obj.set_values(attributes)
    return obj

def materialize(target, items):
    return ModelCollection(target, ((item_name, hydrate(target, item_name, attributes))
                                    for item_name, attributes in items.items()))
