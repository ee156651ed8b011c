from __future__ import annotations

from typing import Any


class PeerReviewError(Exception):
    """
    Base for business-rule failures raised by the core.

    Each subclass carries the HTTP status the API layer should answer with;
    the handler registered in main.py renders them as {"detail": ...}.
    """

    status_code: int = 400
    default_detail: str = "Request could not be completed"

    def __init__(self, detail: Any = None):
        self.detail = detail if detail is not None else self.default_detail
        super().__init__(str(self.detail))


class NotFound(PeerReviewError):
    status_code = 404
    default_detail = "Not found"


class Forbidden(PeerReviewError):
    status_code = 403
    default_detail = "Forbidden"


class InsufficientSubmissions(PeerReviewError):
    status_code = 400
    default_detail = "At least 2 submitted texts are required to distribute reviews"


class PhaseViolation(PeerReviewError):
    status_code = 403
    default_detail = "Operation not allowed in the current phase"


class PendingReviewsRemain(PeerReviewError):
    status_code = 400
    default_detail = "Complete all assigned reviews first"


class InactiveReviewAssignment(PeerReviewError):
    status_code = 400
    default_detail = "This review assignment is no longer active"


class AlreadyReviewed(PeerReviewError):
    status_code = 400
    default_detail = "This text has already been reviewed"


class ReviewAlreadyRejected(PeerReviewError):
    status_code = 409
    default_detail = "Review has already been rejected"


class FeedbackNotOpen(PeerReviewError):
    status_code = 403
    default_detail = "Feedback is not open yet"


class InsufficientReviewsCompleted(PeerReviewError):
    status_code = 403

    def __init__(self, required: int, completed: int):
        self.required = required
        self.completed = completed
        super().__init__(
            {
                "message": f"Complete at least {required} review(s) before viewing feedback",
                "required": required,
                "completed": completed,
            }
        )
