import pytest
from datetime import datetime, timedelta, timezone
from botocore.exceptions import ClientError

from secretops.logger import ScriptLogger
from secretops.records import (
    Conflict,
    Created,
    RecordKind,
    RecordMeta,
    RecordRef,
)


def client_error(code, message="Test error", operation="Operation"):
    """A real botocore ClientError carrying the given provider code"""
    return ClientError(
        error_response={'Error': {'Code': code, 'Message': message}},
        operation_name=operation,
    )


class FixedClock:
    """Clock returning a settable time. advance() moves it forward."""

    def __init__(self, now=datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeStore:
    """In-memory store implementing the six gateway primitives.

    failures maps a primitive name to a list of exceptions; each call to that
    primitive pops and raises the next one.
    """

    def __init__(self, kind):
        self.kind = kind
        self.records = {}
        self.failures = {}
        self.calls = []

    def fail(self, primitive, *exceptions):
        self.failures.setdefault(primitive, []).extend(exceptions)

    def _call(self, primitive, name):
        self.calls.append((primitive, name))
        pending = self.failures.get(primitive)
        if pending:
            raise pending.pop(0)

    def _ref(self, name):
        return RecordRef(name, self.kind, arn=f"arn:fake:{self.kind.value}:{name}")

    def create_record(self, name, value, tags, description=None):
        self._call("create_record", name)
        if name in self.records:
            return Conflict(name, self.kind)
        self.records[name] = {"value": value, "tags": dict(tags), "description": description}
        return Created(self._ref(name))

    def update_value(self, name, value):
        self._call("update_value", name)
        if name not in self.records:
            return None
        self.records[name]["value"] = value
        return self._ref(name)

    def merge_tags(self, name, tags):
        self._call("merge_tags", name)
        if name not in self.records:
            return False
        self.records[name]["tags"].update(tags)
        return True

    def describe_record(self, name):
        self._call("describe_record", name)
        if name not in self.records:
            return None
        return RecordMeta(ref=self._ref(name), tags=dict(self.records[name]["tags"]))

    def delete_record(self, name, force=True):
        self._call("delete_record", name)
        if self.records.pop(name, None) is None:
            return None
        return self._ref(name)

    def list_records(self, tag_filter):
        self.calls.append(("list_records", "*"))
        for name, record in list(self.records.items()):
            if all(record["tags"].get(k) == v for k, v in tag_filter.items()):
                yield self._ref(name)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def secret_store():
    return FakeStore(RecordKind.SECRET)


@pytest.fixture
def parameter_store():
    return FakeStore(RecordKind.PARAMETER)


@pytest.fixture
def stores(secret_store, parameter_store):
    return {RecordKind.SECRET: secret_store, RecordKind.PARAMETER: parameter_store}


@pytest.fixture
def script_logger(tmp_path):
    """Configure the cli logger to write into a temporary directory"""
    ScriptLogger.reset()
    logger = ScriptLogger.setup("test-secrets-manager", str(tmp_path / "logs"))
    yield logger
    ScriptLogger.reset()
