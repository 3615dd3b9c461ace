from .recompute import FitStatus, RecomputeScheduler
from .session_vm import SessionViewModel
from .workspace_vm import WorkspaceViewModel

__all__ = [
    "FitStatus",
    "RecomputeScheduler",
    "SessionViewModel",
    "WorkspaceViewModel",
]
