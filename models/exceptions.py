"""
models/exceptions.py
────────────────────
Typed failures raised by the matching engine.

Missing availability / goals / progress / location data is NOT an error: the
sub-score calculators return their neutral value instead.
"""


class MatchingError(Exception):
    """Base class for matching failures."""


class ProfileNotFound(MatchingError, LookupError):
    def __init__(self, learner_id: str) -> None:
        self.learner_id = learner_id
        super().__init__(f"Learner '{learner_id}' not found")


class ComputationError(MatchingError):
    """Unexpected fault while merging a learner's auxiliary records."""

    def __init__(self, learner_id: str, detail: str = "") -> None:
        self.learner_id = learner_id
        msg = f"Could not build matching profile for '{learner_id}'"
        super().__init__(f"{msg}: {detail}" if detail else msg)


class SelfMatchError(MatchingError, ValueError):
    def __init__(self, learner_id: str) -> None:
        self.learner_id = learner_id
        super().__init__("Cannot calculate compatibility with yourself")
