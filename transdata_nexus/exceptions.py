"""
Exception types raised by the analytics services and mapped to HTTP
responses by the API layer.
"""


class TransDataError(Exception):
    """Base error for the trade analytics service"""
    status_code = 500

    def __init__(self, message: str, details: str = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'error': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(TransDataError):
    """Request payload or query parameters are missing or malformed"""
    status_code = 400


class NoDataError(TransDataError):
    """A search term matched no shipment records"""
    status_code = 404


class InvalidReportIdError(TransDataError):
    """Report identifier contains path components"""
    status_code = 400


class ReportNotFoundError(TransDataError):
    """Report metadata or generated file is missing"""
    status_code = 404


class ReportExpiredError(TransDataError):
    """Report metadata exists but its expiry has passed"""
    status_code = 410
