import enum


class DeploymentEnvironment(enum.Enum):
    Production = "production"
    Development = "development"
    Staging = "staging"
    Sandbox = "sandbox"
    Test = "test"
    Local = "local"


class SubmissionState(enum.Enum):
    New = "new"
    Draft = "draft"
    Submitted = "submitted"
    Reopened = "reopened"


class TieBreak(enum.Enum):
    """Which side wins when a server grade timestamp equals the queued one."""

    Local = "local"
    Server = "server"


class SyncState(enum.Enum):
    Idle = "idle"
    BlockedCheck = "blocked_check"
    Running = "running"
    Success = "success"
    Failed = "failed"
