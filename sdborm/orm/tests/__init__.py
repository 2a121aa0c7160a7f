import unittest
import os
import sdborm.orm.core, sdborm.options

sdborm.options.CUT_TRACEBACK = False
sdborm.orm.core.sql_debug(False)


def _load_env():
    settings_filename = os.environ.get('sdborm_test_db')
    if settings_filename is None:
        return dict(provider='memory')
    with open(settings_filename, 'r') as f:
        content = f.read()

    config = {}
    exec(content, config)
    settings = config.get('settings')
    if settings is None or not isinstance(settings, dict):
        raise ValueError('Incorrect settings sdborm test db file contents')
    provider = settings.get('provider')
    if provider is None:
        raise ValueError('Incorrect settings sdborm test db file contents: provider was not specified')
    print('use provider %s' % provider)
    return settings


db_params = _load_env()


def setup_database(db):
    if db._provider is None and db._provider_cls is None:
        db.bind(**db_params)
    for model in db.models.values():
        db.delete_domain(model._domain_)
        db.create_domain(model._domain_)


def teardown_database(db):
    for model in db.models.values():
        db.delete_domain(model._domain_)
    db.disconnect()

