# app/services/errors.py
"""
Exceptions raised by the CRUD services (reference data, users).
Routers translate them to HTTP 404 / 409. Workflow services do not raise;
they return outcome objects instead.
"""


class RecordNotFoundError(Exception):
    def __init__(self, kind: str, record_id):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class DuplicateRecordError(Exception):
    """A unique key (name, CPF, login) already exists. Carries the offending field."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)
