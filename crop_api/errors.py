class DetectionError(Exception):
    """Base error carrying the HTTP status used in the error envelope."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ClientInputError(DetectionError):
    status_code = 400


class PayloadTooLarge(ClientInputError):
    status_code = 413


class StorageError(DetectionError):
    status_code = 500
