import unittest

from sdborm.orm.core import Database, BindingError, MappingError, SelectResult, set_sql_debug
from sdborm.orm.dbproviders.memory import MemoryProvider
from sdborm.orm.tests.testutils import raises_exception

class TestDatabaseBinding(unittest.TestCase):
    def test_bind_by_name(self):
        db = Database('memory', domains=['cars'])
        self.assertEqual(db.provider_name, 'memory')
        self.assertIsNone(db._provider)
        self.assertIsInstance(db.provider, MemoryProvider)
        self.assertEqual(db.provider.list_domains(), ['cars'])
    def test_bind_by_keyword(self):
        db = Database()
        db.bind(provider='memory', page_size=10)
        self.assertEqual(db.provider.page_size, 10)
    def test_bind_by_dict(self):
        db = Database(dict(provider='memory'))
        self.assertIsInstance(db.provider, MemoryProvider)
    def test_bind_by_class(self):
        db = Database(MemoryProvider)
        self.assertEqual(db.provider_name, 'Memory')
        self.assertIsInstance(db.provider, MemoryProvider)
    def test_bind_instance(self):
        provider = MemoryProvider()
        db = Database(provider)
        self.assertIs(db.provider, provider)
        db.disconnect()
        self.assertIs(db.provider, provider)
    def test_disconnect_drops_lazy_provider(self):
        db = Database('memory', domains=['cars'])
        provider = db.provider
        db.disconnect()
        self.assertIsNot(db.provider, provider)
    @raises_exception(BindingError, 'Unknown provider oracle')
    def test_unknown_provider(self):
        Database('oracle')
    @raises_exception(TypeError, 'Provider name should be string. Got: \'int\'')
    def test_incorrect_provider(self):
        Database(42)
    @raises_exception(TypeError, 'Database provider is not specified')
    def test_missing_provider(self):
        Database(page_size=10)
    @raises_exception(TypeError, 'Provider options cannot be used with a provider instance')
    def test_instance_with_options(self):
        Database(MemoryProvider(), page_size=10)
    @raises_exception(BindingError, 'Database object was already bound to memory provider')
    def test_bind_twice(self):
        db = Database('memory')
        db.bind('memory')
    @raises_exception(MappingError, 'Database object is not bound with a provider yet')
    def test_unbound(self):
        Database().provider

class TestDatabaseOperations(unittest.TestCase):
    def setUp(self):
        self.db = Database('memory')
        self.db.create_domain('cars')
    def test_execute_and_query(self):
        self.assertTrue(self.db.execute("INSERT INTO cars (itemName(), brand) VALUES ('1', 'Ford')"))
        self.assertEqual(self.db.last_insert_id, '1')
        result = self.db.query("SELECT * FROM cars WHERE brand = 'Ford'")
        self.assertIsInstance(result, SelectResult)
        self.assertEqual(result.item_names(), ['1'])
        self.assertEqual(result['1'], {'brand': 'Ford'})
        self.assertEqual(repr(result), '<SelectResult 1 items>')
    def test_failed_query(self):
        result = self.db.query('SELECT * FROM trucks')
        self.assertFalse(result.ok)
        self.assertEqual(repr(result), '<SelectResult failed: The specified domain does not exist.>')
    def test_delete_domain(self):
        self.db.delete_domain('cars')
        self.assertEqual(self.db.provider.list_domains(), [])
    def test_sql_log(self):
        set_sql_debug(True)
        try:
            with self.assertLogs('sdborm.orm.sql', level='INFO') as cm:
                self.db.create_domain('owners')
                self.db.query('SELECT * FROM owners')
        finally:
            set_sql_debug(False)
        self.assertEqual(cm.output, ['INFO:sdborm.orm.sql:CREATE DOMAIN owners',
                                     'INFO:sdborm.orm.sql:SELECT * FROM owners'])

if __name__ == '__main__':
    unittest.main()
