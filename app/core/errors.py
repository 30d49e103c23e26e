"""
Domain errors

Services raise these; app.main turns them into {"success": false, "error": ...}
responses with the matching status code.
"""
from typing import List


class ClinicError(Exception):
    """Base error with an HTTP status and a user-facing message"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(ClinicError):
    """
    One or more payload violations

    All violations are collected first and reported together, one per line.
    """
    status_code = 400

    def __init__(self, errors: List[str]):
        super().__init__("\n".join(errors))
        self.errors = list(errors)


class NotFound(ClinicError):
    status_code = 404


class Conflict(ClinicError):
    status_code = 400


class InsufficientQuota(ClinicError):
    status_code = 400
