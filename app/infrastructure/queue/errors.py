"""Job queue exceptions."""

from infrastructure.operations.errors import InfrastructureError


class QueueOperationError(InfrastructureError):
    """The queue backend rejected or failed an operation."""

    code = "QUEUE_OPERATION_FAILED"


class UnrecoverableJobError(Exception):
    """Raised by a job handler when retrying the job can never succeed.

    The worker marks the job FAILED immediately instead of scheduling a
    retry.
    """


class JobNotReadyError(Exception):
    """Raised by a job handler when the job's target is not ready yet.

    The worker hands the job back to the queue after ``delay_ms`` without
    spending an attempt, up to ``QueueConfig.max_releases`` times.
    """

    delay_ms = 1000
