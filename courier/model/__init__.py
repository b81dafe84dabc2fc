__all__ = [
    "Assignment",
    "AssignmentID",
    "AssignmentPlugin",
    "AutoSynced",
    "BaseModel",
    "CourseID",
    "DeploymentEnvironment",
    "Feedback",
    "FeedbackGrade",
    "Grade",
    "GradeInfo",
    "GradeItem",
    "GradingForm",
    "ManualSynced",
    "ModuleID",
    "OutcomeInfo",
    "Outcomes",
    "PendingGrade",
    "PendingSubmission",
    "Submission",
    "SubmissionAttempt",
    "SubmissionPlugin",
    "SubmissionState",
    "SubmissionStatus",
    "SyncEvent",
    "SyncResult",
    "SyncState",
    "TieBreak",
    "UserID",
]

from .assignment import Assignment, AssignmentPlugin
from .base import BaseModel
from .enum import DeploymentEnvironment, SubmissionState, SyncState, TieBreak
from .grade import Grade, GradeInfo, GradeItem, GradingForm, OutcomeInfo, Outcomes
from .id import AssignmentID, CourseID, ModuleID, UserID
from .pending import PendingGrade, PendingSubmission
from .submission import Feedback, FeedbackGrade, Submission, SubmissionAttempt, SubmissionPlugin, SubmissionStatus
from .sync import AutoSynced, ManualSynced, SyncEvent, SyncResult
