from enum import Enum


class Role(str, Enum):
    TRADER = "trader"
    RESEARCHER = "researcher"
    ANALYST = "analyst"


class RoundType(str, Enum):
    BEHAVIORAL = "behavioral"
    TECHNICAL = "technical"
    MIXED = "mixed"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SubscriptionStatus(str, Enum):
    FREE = "free"
    ACTIVE = "active"
    INACTIVE = "inactive"


class SubscriptionPlan(str, Enum):
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class RunState(str, Enum):
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
