class PracticeAccessError(Exception):
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class UnauthorizedError(PracticeAccessError):
    status_code = 401


class ForbiddenError(PracticeAccessError):
    status_code = 403


class DeviceForbidden(ForbiddenError):
    pass


class NotFoundError(PracticeAccessError):
    status_code = 404


class ConflictError(PracticeAccessError):
    status_code = 409
