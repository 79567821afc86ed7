import importlib, pkgutil

# Load every submodule (models.*) so the classes land in the declarative registry
for m in pkgutil.iter_modules(__path__, __name__ + "."):
    importlib.import_module(m.name)

from .user import User  # noqa: E402,F401
from .product import Product  # noqa: E402,F401
from .description import Description  # noqa: E402,F401
from .analytics import AnalyticsEvent  # noqa: E402,F401
