class WorkclockError(Exception):
    """Base class for errors surfaced to the caller."""
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class Unauthenticated(WorkclockError):
    status_code = 401

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(detail)


class InvalidTransition(WorkclockError):
    status_code = 400


class NotFound(WorkclockError):
    status_code = 404

    def __init__(self, detail: str = "Not found"):
        super().__init__(detail)


class ValidationError(WorkclockError):
    status_code = 422
