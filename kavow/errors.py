from __future__ import annotations

from typing import Optional


class KavowError(RuntimeError):
    """Base error; carries an optional manual remediation for the user."""

    exit_code = 1

    def __init__(self, message: str, *, remediation: Optional[str] = None) -> None:
        super().__init__(message)
        self.remediation = remediation


class SetupAbort(KavowError):
    """Fatal: the run stops, the recovery point stays intact."""


class UserDeclined(SetupAbort):
    """The user answered no to a confirmation the setup cannot continue without."""


class LockTimeout(SetupAbort):
    def __init__(self, lock_path: str, waited: float) -> None:
        super().__init__(
            f"Another setup process is running (waited {waited:.0f}s for {lock_path}).",
            remediation=f"Remove {lock_path} if this is incorrect.",
        )
        self.lock_path = lock_path
        self.waited = waited


class StateCorrupt(KavowError):
    """The state document is missing required keys or is not valid JSON."""


class SelectionCancelled(KavowError):
    """The user declined a selection; the stage can be resumed later."""


class SetupPaused(KavowError):
    """Clean stop requested by the user or by a preflight that needs a re-run."""

    exit_code = 0


class Interrupted(KavowError):
    def __init__(self, signum: int) -> None:
        super().__init__(f"Interrupted by signal {signum}")
        self.signum = signum
        self.exit_code = 128 + signum


class CommandError(KavowError):
    def __init__(self, message: str, *, returncode: int, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
