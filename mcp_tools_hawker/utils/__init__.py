from .geo import haversine_m  # noqa: F401
