class PieceError(Exception):
    """Base class for rejected piece operations. Carries the HTTP status to report."""

    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class PieceValidationError(PieceError):
    status_code = 400


class PieceNotFound(PieceError):
    status_code = 404


class PieceAccessDenied(PieceError):
    status_code = 403


class InvalidPieceTransition(PieceError):
    status_code = 400
