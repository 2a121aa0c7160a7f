import unittest

from sdborm.orm.core import Database, Model, OrmError, MappingError
from sdborm.orm.materializing import ModelCollection
from sdborm.orm.tests import setup_database, teardown_database
from sdborm.orm.tests.testutils import raises_exception

db = Database()

class SDBCar(db.Model):
    _domain_ = 'cars'

class SDBOwner(db.Model):
    _domain_ = 'owners'

class TestModel(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        setup_database(db)
    @classmethod
    def tearDownClass(cls):
        teardown_database(db)
    def setUp(self):
        for model in db.models.values():
            db.delete_domain(model._domain_)
            db.create_domain(model._domain_)
        db.batch_put_attributes('cars', {
            '1': dict(brand='Alfa Romeo', colour='Blue', doors='4'),
            '2': dict(brand='Volkswagen', colour='Black', doors='5'),
            '3': dict(brand='Volkswagen', colour='Grey', doors='2'),
            })
        db.batch_put_attributes('owners', {
            '1': dict(name='MyName5', age='30'),
            })

    def test_find(self):
        car = SDBCar.find(3)
        self.assertIsInstance(car, SDBCar)
        self.assertEqual(car.id, '3')
        self.assertEqual(car.brand, 'Volkswagen')
        self.assertEqual(car.colour, 'Grey')
    def test_find_missing(self):
        self.assertIs(SDBCar.find('404'), False)
    def test_find_by(self):
        car = SDBCar.find_by(brand='Alfa Romeo')
        self.assertEqual(car.id, '1')
        self.assertEqual(car.colour, 'Blue')
    def test_find_by_id(self):
        self.assertEqual(SDBCar.find_by(id=2).brand, 'Volkswagen')
    def test_find_all(self):
        cars = SDBCar.find_all()
        self.assertIsInstance(cars, ModelCollection)
        self.assertEqual(len(cars), 3)
        self.assertIsInstance(cars['2'], SDBCar)
        self.assertEqual(cars['2'].colour, 'Black')
    def test_find_all_by(self):
        cars = SDBCar.find_all_by(brand='Volkswagen')
        self.assertEqual(cars.keys(), ['2', '3'])
    def test_find_all_limit(self):
        cars = SDBCar.find_all(where="doors > '0'", order_by='doors DESC', limit=2)
        self.assertEqual([ car.doors for car in cars ], ['5', '4'])
    def test_find_with_similar_placeholder_names(self):
        car = SDBCar.find(where='name = :brand OR brand = :brandname',
                          values={':brand': 'Volkswagen', ':brandname': 'Volkswagen'})
        self.assertEqual(car.brand, 'Volkswagen')
    @raises_exception(TypeError, 'item_name and where arguments cannot be used together')
    def test_find_with_item_name_and_where(self):
        SDBCar.find(1, where="brand = 'Ford'")
    @raises_exception(TypeError, "Incorrect attribute name: 'brand name'")
    def test_find_by_incorrect_name(self):
        SDBCar.find_by(**{'brand name': 'Ford'})

    def test_save_create(self):
        car = SDBCar()
        car.brand = 'Ford'
        car.colour = 'Black'
        car.doors = 2
        car._private = 'changing private attribute'
        self.assertTrue(car.save())
        self.assertIsNotNone(car.id)
        stored = SDBCar.find(car.id)
        self.assertEqual(stored.id, car.id)
        self.assertEqual(stored.brand, 'Ford')
        self.assertEqual(stored.colour, 'Black')
        self.assertEqual(stored.doors, '2')
        self.assertFalse(hasattr(stored, '_private'))
    def test_save_value_looking_like_placeholder(self):
        car = SDBCar(brand='see :colour', colour='Black')
        self.assertTrue(car.save())
        stored = SDBCar.find(car.id)
        self.assertEqual(stored.brand, 'see :colour')
        self.assertEqual(stored.colour, 'Black')
    def test_save_update(self):
        car = SDBCar(brand='Ford', colour='Blue', doors=8)
        car.save()
        car = SDBCar.find_by(colour='Blue', brand='Ford')
        car.colour = 'Red'
        car.doors = 6
        self.assertTrue(car.save())
        stored = SDBCar.find(car.id)
        self.assertEqual(stored.brand, 'Ford')
        self.assertEqual(stored.colour, 'Red')
        self.assertEqual(stored.doors, '6')
        self.assertEqual(len(SDBCar.find_all()), 4)
    def test_save_force_insert(self):
        car = SDBCar(id='custom', brand='Ford')
        self.assertTrue(car.save(force_insert=True))
        self.assertEqual(car.id, 'custom')
        self.assertEqual(SDBCar.find('custom').brand, 'Ford')
    @raises_exception(OrmError, "Cannot save SDBCar[None] without attributes")
    def test_save_without_attributes(self):
        SDBCar().save()
    def test_delete(self):
        car = SDBCar(brand='Ford', colour='Blue', doors=8)
        car.save()
        self.assertTrue(car.delete())
        self.assertIs(SDBCar.find(car.id), False)
    @raises_exception(OrmError, 'Cannot delete SDBCar[None]: it was never saved')
    def test_delete_unsaved(self):
        SDBCar(brand='Ford').delete()
    def test_destroy(self):
        self.assertTrue(SDBCar.destroy(1))
        self.assertEqual(SDBCar.find_all().keys(), ['2', '3'])
    def test_collection_delete(self):
        self.assertTrue(SDBCar.find_all_by(brand='Volkswagen').delete())
        self.assertEqual(SDBCar.find_all().keys(), ['1'])
    def test_to_dict(self):
        self.assertEqual(SDBCar.find(2).to_dict(), {'brand': 'Volkswagen', 'colour': 'Black', 'doors': '5'})

    def test_find_all_pages(self):
        for start in range(0, 150, 25):
            db.batch_put_attributes('owners', dict(
                ('owner%d' % i, dict(name='Owner%d' % i)) for i in range(start, start + 25)))
        self.assertEqual(len(SDBOwner.find_all()), 151)
    def test_find_quotes(self):
        owner = SDBOwner.find(where="name = 'o\\''connel' OR name LIKE :name", values={':name': 'MyName%'})
        self.assertIsInstance(owner, SDBOwner)
        self.assertEqual(owner.name, 'MyName5')
        owner = SDBOwner(name="o'connel")
        owner.save()
        found = SDBOwner.find(where='name = :first OR name LIKE :name',
                              values={':name': 'MyName%', ':first': "o'connel"})
        self.assertEqual(found.name, 'MyName5')
        self.assertEqual(SDBOwner.find(owner.id).name, "o'connel")
    def check_create(self, name):
        owner = SDBOwner(name=name)
        owner.save()
        self.assertEqual(SDBOwner.find(owner.id).name, name)
    def check_update(self, name):
        owner = SDBOwner.find_by(name='MyName5')
        owner.name = name
        owner.save()
        self.assertEqual(SDBOwner.find(owner.id).name, name)
    def test_create_comma(self):
        self.check_create('This is, a silly')
    def test_update_comma(self):
        self.check_update('This is, a silly')
    def test_create_complex(self):
        self.check_create("This i's, \na =  silly")
    def test_update_complex(self):
        self.check_update("This \ni's', 'a silly\\\\',")
    def test_escape_create(self):
        self.check_create("Th''is i's a \\'silly")
    def test_escape_update(self):
        self.check_update("This i's a \\'silly")
    def test_multi_valued_attribute(self):
        db.provider.put_attributes('owners', '1', {'pets': ['cat', "o\\'dog"]})
        self.assertEqual(SDBOwner.find(1).pets, ['cat', "o'dog"])

class TestModelDeclaration(unittest.TestCase):
    @raises_exception(MappingError, 'Model Orphan must inherit from db.Model of some Database object')
    def test_model_without_database(self):
        class Orphan(Model): pass
    @raises_exception(MappingError, "Incorrect domain name for model Truck: 'truck-list'")
    def test_incorrect_domain(self):
        class Truck(db.Model):
            _domain_ = 'truck-list'
    def test_default_domain(self):
        local_db = Database('memory')
        class Bike(local_db.Model): pass
        self.assertEqual(Bike._domain_, 'Bike')
        self.assertIs(local_db.models['Bike'], Bike)
        self.assertEqual(repr(Bike), '<Model Bike (domain Bike)>')
    def test_consistent_read(self):
        local_db = Database('memory')
        class Bike(local_db.Model):
            _consistent_read_ = True
        self.assertTrue(Bike.enforce_read_consistency())
        self.assertFalse(SDBCar.enforce_read_consistency())
    def test_set_values(self):
        car = SDBCar()
        car.set_values({'brand': "Alfa\\'s", '_hidden': 'x', 'id': '9', 'tags': ['a\\nb', 'c']})
        self.assertEqual(car.brand, "Alfa's")
        self.assertEqual(car.tags, ['a\nb', 'c'])
        self.assertFalse(hasattr(car, '_hidden'))
        self.assertIsNone(car.id)

if __name__ == '__main__':
    unittest.main()
