"""Error taxonomy shared by the services and the JSON error handlers."""

from __future__ import annotations


class StockOpnameError(Exception):
    status_code = 400

    def __init__(self, message: str, *, details: dict[str, object] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"error": self.message}
        payload.update(self.details)
        return payload


class ValidationError(StockOpnameError):
    status_code = 400


class MissingColumnsError(ValidationError):
    pass


class EmptyBarcodeError(ValidationError):
    pass


class InvalidCountError(ValidationError):
    pass


class TabularImportError(ValidationError):
    """Raised when tabular uploads cannot be parsed."""


class NotFoundError(StockOpnameError):
    status_code = 404


class ProductNotFoundError(NotFoundError):
    pass


class LocationNotFoundError(NotFoundError):
    pass


class StockCountNotFoundError(NotFoundError):
    pass


class NoExportDataError(StockOpnameError):
    status_code = 404


class StorageError(StockOpnameError):
    status_code = 500

    def to_dict(self) -> dict[str, object]:
        # Driver messages stay in the logs.
        return {"error": "The stock count database could not complete the request."}
