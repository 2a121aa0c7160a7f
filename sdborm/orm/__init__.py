from sdborm.orm.core import *
