class FareError(Exception):
    """Base for route/fare failures. `status_code` is the HTTP status the API answers with."""

    status_code = 400

    def __init__(self, message: str, route_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.route_id = route_id

    @property
    def code(self) -> str:
        return type(self).__name__


class RouteNotFound(FareError):
    status_code = 404


class UnknownStop(FareError):
    status_code = 404


class InvalidSegment(FareError):
    """Boarding/alighting pair exists but does not travel forward."""
    status_code = 400


class InvalidStopSequence(FareError):
    """A stop ledger breaks its ordering/monotonicity rules."""
    status_code = 500
