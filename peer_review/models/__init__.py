from peer_review.models.assignment import Assignment
from peer_review.models.audit_event import AuditEvent
from peer_review.models.rbac import Role, UserRole
from peer_review.models.review import Review
from peer_review.models.review_assignment import ReviewAssignment
from peer_review.models.text import Text
from peer_review.models.user import User

__all__ = [ "Assignment", "AuditEvent", "Role", "UserRole",
           "Review", "ReviewAssignment", "Text", "User" ]
