class TaskFlowError(Exception):
    """Base class for errors raised by the storage layer and the AI adapter."""


class DuplicateRecordError(TaskFlowError):
    """An insert would break a uniqueness constraint (e.g. User.email)."""

    def __init__(self, collection: str, field: str, value):
        self.collection = collection
        self.field = field
        self.value = value
        super().__init__(f"A record in {collection} with this {field} already exists")


class MissingReferenceError(TaskFlowError):
    """A foreign key on an insert points at a record that does not exist."""

    def __init__(self, entity: str, record_id: int):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"Referenced {entity} {record_id} does not exist")


class StorageFault(TaskFlowError):
    """Persisted data violates a store invariant (e.g. unparsable hours)."""


class AdapterError(TaskFlowError):
    """The AI suggestion service failed, timed out or returned unusable output."""
