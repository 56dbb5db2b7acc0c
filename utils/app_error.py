from typing import Optional
from fastapi import HTTPException

# Error codes the client reacts to during login
ACTIVATION_PENDING = "ACTIVATION_PENDING"
ACTIVATION_RESENT = "ACTIVATION_RESENT"


class AppError(HTTPException):
    """
    Operational error with an HTTP status.

    status is "fail" for client errors (4xx) and "error" for everything else.
    The detail payload is what the API returns to the caller.
    """

    def __init__(self, message: str, status_code: int = 500, code: Optional[str] = None, headers: Optional[dict] = None):
        self.message = message
        self.status = "fail" if str(status_code).startswith("4") else "error"
        self.code = code
        self.is_operational = True

        detail = {"success": False, "status": self.status, "message": message}
        if code:
            detail["code"] = code

        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def __str__(self):
        return self.message
