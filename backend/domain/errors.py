"""
Error taxonomy for the map session.

None of these end a session: each one has a local recovery path in
services.map_session.
"""


class FuelFinderError(Exception):
    """Base class for recoverable map-session errors."""


class LocationUnavailable(FuelFinderError):
    """Geolocation was denied, timed out, or the provider failed."""


class SearchFailed(FuelFinderError):
    """The nearby-places provider failed or was unreachable."""


class RouteFailed(FuelFinderError):
    """The directions provider failed to produce a route."""


class NoRouteFound(RouteFailed):
    """The directions provider answered, but there is no drivable route."""


class StaleResultDiscarded(FuelFinderError):
    """A newer request was issued before this one resolved; its result is dropped."""
