"""Error taxonomy for listing discovery and route planning.

Every error carries a stable `code` that the HTTP layer puts in its error
payload. An empty result is never an error.
"""


class GarageSaleError(Exception):
    """Base error."""

    code = "garage_sale_error"


class InvalidFilterError(GarageSaleError):
    """Radius requested without an origin, or a reversed date range."""

    code = "invalid_filter"


class InsufficientStopsError(GarageSaleError):
    """Route optimisation needs at least two stops."""

    code = "insufficient_stops"

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"At least 2 stops are required to plan a route, got {count}")


class TooManyStopsError(GarageSaleError):
    code = "too_many_stops"

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(f"Route has {count} stops, the configured maximum is {limit}")


class InvalidCoordinateError(GarageSaleError):
    code = "invalid_coordinate"

    def __init__(self, latitude, longitude):
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(f"Invalid coordinate ({latitude}, {longitude})")


class ListingNotFoundError(GarageSaleError):
    code = "listing_not_found"

    def __init__(self, listing_id: str):
        self.listing_id = listing_id
        super().__init__(f"Listing not found: {listing_id}")


class NotOwnerError(GarageSaleError):
    """Mutation attempted by someone other than the listing's owner."""

    code = "not_owner"

    def __init__(self, listing_id: str, user_id: str):
        self.listing_id = listing_id
        self.user_id = user_id
        super().__init__(f"User {user_id} does not own listing {listing_id}")


class StoreUnavailableError(GarageSaleError):
    """The listing or favorites store could not be reached."""

    code = "store_unavailable"


class RequestTimeoutError(GarageSaleError):
    code = "request_timeout"

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Request did not finish within {timeout}s")
