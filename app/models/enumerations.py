from enum import Enum

class EvaluationMode(str, Enum):
    FINAL_SCORE = "final_score"        # One overall score per evaluator
    CRITERIA_BASED = "criteria_based"  # Per-criterion scores combined per evaluator

class SampleStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    EVALUATED = "evaluated"
    EXCLUDED = "excluded"
    COMPLETED = "completed"

class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class CommissionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

class CommissionMemberRole(str, Enum):
    MAIN_MEMBER = "main_member"  # Activates sessions when no president is assigned
    PRESIDENT = "president"      # Optional; activates sessions when assigned
    MEMBER = "member"
    TRAINEE = "trainee"          # Excluded from calculation by default

class DocumentKind(str, Enum):
    PROTOCOL = "protocol"
    RECORD = "record"

class DocumentStatus(str, Enum):
    DRAFT = "draft"
    GENERATED = "generated"
    SENT = "sent"
    ACKNOWLEDGED = "acknowledged"
