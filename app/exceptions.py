"""Errors raised while ingesting and synchronizing alerts."""


class MalformedAlertError(ValueError):
    """A raw alert payload is missing a field the normalizer cannot do without."""

    def __init__(self, field: str, index: int | None = None):
        self.field = field
        self.index = index
        where = f" (alert #{index})" if index is not None else ""
        super().__init__(f"Malformed alert{where}: missing or invalid field '{field}'")


class UnparseableTimestampError(ValueError):
    """A timestamp string could not be parsed as ISO 8601."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Unparseable timestamp: {value!r}")


class CollaboratorWriteError(RuntimeError):
    """A document store write failed during a synchronization pass.

    Nothing beyond the failed call has been committed; the caller decides
    whether to retry.
    """

    def __init__(self, operation: str, document_id: str):
        self.operation = operation
        self.document_id = document_id
        super().__init__(f"{operation} failed for document {document_id}")
