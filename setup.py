from setuptools import setup

import unittest

def test_suite():
    test_loader = unittest.TestLoader()
    test_suite = test_loader.discover('sdborm.orm.tests', pattern='test_*.py')
    return test_suite

name = "sdborm"
version = __import__('sdborm').__version__
description = "Model layer and SQL statement emulation for Amazon SimpleDB"
long_description = """
About
=========
sdborm is a small model layer for Amazon SimpleDB. SimpleDB only understands
its own SELECT dialect; sdborm accepts the usual INSERT, UPDATE and DELETE
statements with named placeholders too and turns them into attribute store
calls::

    db = Database('sdb', region_name='us-east-1')

    class Car(db.Model):
        _domain_ = 'cars'

    car = Car(brand='Ford', colour='Black')
    car.save()
    Car.find_all_by(brand='Ford')

    stmt = db.prepare('UPDATE cars SET colour = :colour WHERE itemName() = :itemName()')
    stmt.execute({':colour': 'Red', ':itemName()': car.id})

A process-local ``memory`` provider evaluates the SimpleDB select dialect
itself and is used by the test suite.

Installation
=================
::

    pip install sdborm
"""

classifiers = [
    'Development Status :: 4 - Beta',
    'Intended Audience :: Developers',
    'License :: OSI Approved :: Apache Software License',
    'Operating System :: OS Independent',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: Software Development :: Libraries',
    'Topic :: Database'
]

author = "sdborm developers"
url = "https://github.com/sdborm/sdborm"
licence = "Apache License Version 2.0"

packages = [
    "sdborm",
    "sdborm.orm",
    "sdborm.orm.dbproviders",
    "sdborm.orm.tests",
]

install_requires = [
    "boto3",
    "decorator",
]

extras_require = {
    "test": ["pytest"],
}

if __name__ == "__main__":
    setup(
        name=name,
        version=version,
        description=description,
        long_description=long_description,
        classifiers=classifiers,
        author=author,
        url=url,
        license=licence,
        packages=packages,
        install_requires=install_requires,
        extras_require=extras_require,
        python_requires='>=3.6',
        test_suite='setup.test_suite'
    )
