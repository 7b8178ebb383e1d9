"""
Gateway error taxonomy.

Every failure between decoding the inbound request and encoding the outbound
response is a GatewayError.  The HTTP layer turns all of them into a 500.
"""


class GatewayError(Exception):
    """Base class for downstream and mapping failures."""


class SerializationError(GatewayError):
    """The job spec could not be encoded for the Horde."""


class SubmitError(GatewayError):
    """Submitting the job failed (transport, HTTP status, or response body)."""


class PollError(GatewayError):
    """Fetching the job status failed (transport, HTTP status, or response body)."""


class PollTimeoutError(GatewayError):
    """The job did not finish within the configured attempt or time cap."""

    def __init__(self, job_id: str, attempts: int, elapsed: float):
        super().__init__(
            f"job {job_id} not done after {attempts} polls ({elapsed:.1f}s)"
        )
        self.job_id = job_id
        self.attempts = attempts
        self.elapsed = elapsed


class FaultedJobError(GatewayError):
    """The Horde reported the job as faulted."""

    def __init__(self, job_id: str):
        super().__init__(f"job {job_id} faulted on the horde")
        self.job_id = job_id


class EmptyResultError(GatewayError):
    """A completed job carried no generations."""
