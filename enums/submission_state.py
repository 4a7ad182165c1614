from enum import Enum


class SubmissionState(Enum):
    IDLE = "IDLE"                 # Nothing sent yet
    SUBMITTING = "SUBMITTING"     # Order request in flight
    SUCCEEDED = "SUCCEEDED"       # Order created (final)
    FAILED = "FAILED"             # Last attempt rejected, retry allowed
