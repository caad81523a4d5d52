from .catalog import Catalog
from .parameters import Parameters
