from . import error_tools as ErrorTools
from . import geo_tools as GeoTools
from . import schema as Schema

__all__ = [
    "ErrorTools",
    "GeoTools",
    "Schema",
]
