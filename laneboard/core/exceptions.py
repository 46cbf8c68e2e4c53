class LaneboardError(Exception):
    """Base class for domain errors raised by the services layer"""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(LaneboardError):
    """Entity does not exist or does not belong to the addressed parent"""

    status_code = 404


class AuthorizationError(NotFoundError):
    """
    Caller is not a member of the board.

    Reported exactly like NotFoundError so that boards a user cannot
    access are indistinguishable from boards that do not exist.
    """


class ValidationError(LaneboardError):
    """Input rejected before anything was written"""

    status_code = 422


class ConflictError(LaneboardError):
    """The addressed list kept changing under a concurrent writer"""

    status_code = 409
