from .cache import CacheSlot, CacheState  # noqa: F401
from .config import Settings  # noqa: F401
from .schemas import ClosureRecord, HawkerCentre, HawkerNameArgs, NearbyHawkersArgs, RankedHawker  # noqa: F401
