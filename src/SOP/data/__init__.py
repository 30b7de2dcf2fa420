"""Data providers for indicator observations and projection artifacts.  Importing this package sets up the unit
registry shared by pint and pint-pandas.
"""

import pint
from pint import set_application_registry

ureg = pint.UnitRegistry()
set_application_registry(ureg)

# Overwrite what pint/pint/__init__.py initalizes
pint.Quantity = ureg.Quantity
pint.Unit = ureg.Unit

# FIXME: delay loading of pint_pandas until after we've initialized ourselves
from pint_pandas import PintType  # noqa E402

PintType.ureg = ureg

Q_ = ureg.Quantity
