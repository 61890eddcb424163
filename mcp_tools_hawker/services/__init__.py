from .closures import closures_text, find_closures  # noqa: F401
from .data_gov_sg import OpenDataGateway  # noqa: F401
from .details import details_text, match_hawker  # noqa: F401
from .nearby import find_nearby, nearby_hawkers_text, rank_by_distance  # noqa: F401
