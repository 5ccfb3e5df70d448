"""Guestmerge exceptions."""


class GuestMergeError(Exception):
    """
    Structured exception for merge operations.

    Usage:
        try:
            merger.resolve_customer(...)
        except GuestMergeError as e:
            if e.code == "CUSTOMER_LOOKUP_FAILED":
                handle_store_down()
    """

    code = "MERGE_ERROR"

    _default_messages = {
        "MERGE_ERROR": "Guest merge failed",
        "CUSTOMER_LOOKUP_FAILED": "Failed to get customer record",
        "CUSTOMER_CREATE_FAILED": "Failed to create customer record",
        "MERGE_STEP_FAILED": "Merge step failed",
        "INVALID_USER": "Authenticated user id is required",
    }

    def __init__(self, code: str | None = None, message: str | None = None, **data):
        if code:
            self.code = code
        self.message = message or self._default_messages.get(self.code, self.code)
        self.data = data
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}


class FatalLookupError(GuestMergeError):
    """Destination customer could not be read (not a plain not-found)."""

    code = "CUSTOMER_LOOKUP_FAILED"


class FatalCreateError(GuestMergeError):
    """Destination customer had to be created and the insert failed."""

    code = "CUSTOMER_CREATE_FAILED"


class PartialStepError(GuestMergeError):
    """
    A single merge step failed.

    Never raised out of the reconciler: collected on MergeResult.errors so the
    caller can see what stayed unmerged.
    """

    code = "MERGE_STEP_FAILED"

    def __init__(self, step: str, message: str | None = None, **data):
        self.step = step
        super().__init__(message=message, step=step, **data)
