class RefGenError(Exception):
    """Base class for errors raised by the reference generation core."""


class GenerationServiceError(RefGenError):
    """The generation backend failed or returned an unusable response."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationCancelled(RefGenError):
    """The in-flight generation request was aborted by the user."""


class InvalidJobTransition(RefGenError):
    def __init__(self, job_id: str, current: str, target: str):
        super().__init__(f"Job {job_id} cannot move from {current} to {target}")
        self.job_id = job_id
        self.current = current
        self.target = target


class SessionNotFound(RefGenError):
    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id
