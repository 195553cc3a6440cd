from typing import Optional


class IssueHunterError(Exception):
    """Base exception for all issue-hunter errors."""
    pass

class MappingError(IssueHunterError):
    """Raised when a stored row or a remote payload cannot be turned into an entity."""
    pass

class RemoteError(IssueHunterError):
    """
    Raised when the GitHub REST API answers with a non-success status.
    `status_code` is None when no response arrived (connection failure, timeout).
    """
    def __init__(self, status_code: Optional[int], message: str = "GitHub API request failed.", reset_at: Optional[str] = None):
        self.status_code = status_code
        self.reset_at = reset_at
        detail = message if status_code is None else f"{message} Status: {status_code}"
        if reset_at:
            detail += f". Rate limit resets at: {reset_at}"
        super().__init__(detail)

class NotFoundError(IssueHunterError):
    """Raised when a referenced user, label or repository is not stored."""
    pass

class StoreError(IssueHunterError):
    """Raised when a database operation fails."""
    pass
