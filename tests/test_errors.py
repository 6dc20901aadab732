import pytest

from errtrail import state
from errtrail.config import Config
from errtrail.consts import Domain, Severity
from errtrail.correlation import CorrelationContext
from errtrail.errors import (
    Error,
    generate_id,
    get_environment,
    get_version,
    new_api_error,
    new_auth_error,
    new_critical_error,
    new_db_error,
    new_error,
    new_error_with_context,
    new_validation_error,
    parse_id,
    wrap_error,
)
from errtrail.logs import Logger


class _RecordingLogger(Logger):
    def __init__(self):
        self.entries = []

    def _add(self, level, msg, fields):
        self.entries.append((level, msg, dict(fields or {})))

    def debug(self, msg, fields=None):
        self._add("DEBUG", msg, fields)

    def info(self, msg, fields=None):
        self._add("INFO", msg, fields)

    def warn(self, msg, fields=None):
        self._add("WARN", msg, fields)

    def error(self, msg, fields=None):
        self._add("ERROR", msg, fields)

    def fatal(self, msg, fields=None):
        self._add("FATAL", msg, fields)

    def messages(self, level):
        return [msg for lvl, msg, _ in self.entries if lvl == level]


@pytest.fixture(autouse=True)
def recorder():
    state.reset()
    logger = _RecordingLogger()
    state.get_registry().set_logger(logger)
    state.set_logger(logger)
    yield logger
    state.reset()


def test_generate_and_parse_round_trip():
    error_id = generate_id(Domain.API, "", Severity.MEDIUM, 404)
    parsed = parse_id(error_id)
    assert parsed.domain == "api"
    assert parsed.ops == "n/a"
    assert parsed.severity == Severity.MEDIUM
    assert parsed.status == 404
    assert error_id.startswith(format(parsed.timestamp, "X") + "-")


def test_parse_id_example():
    parsed = parse_id("689072FD-api-n/a-2-500")
    assert parsed.timestamp == 0x689072FD
    assert parsed.domain == "api"
    assert parsed.ops == "n/a"
    assert parsed.severity == Severity.HIGH
    assert parsed.status == 500


@pytest.mark.parametrize(
    "error_id, message",
    [
        ("too-few-parts", "invalid error ID format"),
        ("ZZ-api-n/a-2-500", "invalid timestamp in error ID"),
        ("1F-api-n/a-x-500", "invalid severity code in error ID"),
        ("1F-api-n/a-2-abc", "invalid status in error ID"),
    ],
)
def test_parse_id_errors(error_id, message):
    with pytest.raises(ValueError, match=message):
        parse_id(error_id)


def test_get_environment(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("ENV", raising=False)
    assert get_environment() == "development"
    monkeypatch.setenv("ENV", "staging")
    assert get_environment() == "staging"
    monkeypatch.setenv("ENVIRONMENT", "production")
    assert get_environment() == "production"


def test_get_version(monkeypatch):
    monkeypatch.delenv("VERSION", raising=False)
    monkeypatch.delenv("APP_VERSION", raising=False)
    assert get_version() == "unknown"
    monkeypatch.setenv("APP_VERSION", "2.0")
    assert get_version() == "2.0"


def test_new_error_registers_record():
    err = new_error(Domain.API, Severity.HIGH, 500, "HTTP_001", "Internal server error")
    record = state.get_registry().lookup(err.id)
    assert record.code == "HTTP_001"
    assert record.status == 500
    assert record.message == "Internal server error"
    assert record.stack == err.stack
    assert record.file.endswith("test_errors.py")
    assert record.function.endswith(".test_new_error_registers_record")


def test_error_string_format():
    err = new_error(Domain.API, Severity.HIGH, 500, "HTTP_001", "Internal server error")
    assert str(err) == f"{err.id} [api:HIGH:500:HTTP_001] Internal server error"
    assert err.detail() == f"{err}\nStack: {err.stack}"


def test_wrap_error_keeps_underlying():
    cause = ValueError("boom")
    err = wrap_error(cause, Domain.DB, Severity.LOW, 500, "DB_1", "query failed")
    assert err.err is cause
    assert err.__cause__ is cause
    assert str(err).endswith("query failed: boom")
    with pytest.raises(Error):
        raise err


@pytest.mark.parametrize(
    "status, severity",
    [(503, Severity.HIGH), (404, Severity.MEDIUM), (302, Severity.LOW)],
)
def test_api_error_severity(status, severity):
    err = new_api_error(status, "API", "api failure")
    assert err.severity == severity
    assert err.domain == Domain.API
    assert err.status == status


def test_auth_db_and_critical_errors(recorder):
    auth = new_auth_error("E_AUTH", "denied")
    assert (auth.domain, auth.severity, auth.status) == (Domain.AUTH, Severity.MEDIUM, 401)
    db = new_db_error("E_DB", "down")
    assert (db.domain, db.severity, db.status) == (Domain.DB, Severity.HIGH, 500)
    critical = new_critical_error(Domain.SYSTEM, "SYS_001", "System failure")
    assert (critical.severity, critical.status) == (Severity.CRITICAL, 500)
    assert "System failure" in recorder.messages("FATAL")


def test_validation_error_warns_unknown_domain(recorder):
    err = new_validation_error("VALIDATION_001", "Invalid input")
    assert (err.domain, err.severity, err.status) == (Domain.VALIDATION, Severity.MEDIUM, 400)
    assert "Creating error with unknown domain" in recorder.messages("WARN")
    assert "Unknown domain used in error" in recorder.messages("WARN")


def test_wrap_unknown_domain_warns(recorder):
    wrap_error(ValueError("x"), "billing", Severity.LOW, 402, "B1", "payment")
    assert "Wrapping error with unknown domain" in recorder.messages("WARN")


def test_context_and_metadata_correlation():
    ctx = CorrelationContext().with_request_id("req-1").with_trace_id("t-1")
    err = new_error_with_context(
        ctx, Domain.USER, Severity.LOW, 400, "U1", "bad user",
        {"operation": "login", "user_id": "u-7"},
    )
    assert (err.request_id, err.trace_id, err.user_id) == ("req-1", "t-1", "u-7")
    assert parse_id(err.id).ops == "login"
    record = state.get_registry().lookup(err.id)
    assert (record.request_id, record.user_id) == ("req-1", "u-7")


def test_stack_captured_only_at_configured_level():
    high = new_db_error("E_DB", "down")
    low = new_error(Domain.USER, Severity.LOW, 400, "U1", "minor")
    assert "test_stack_captured_only_at_configured_level" in high.stack
    assert low.stack == ""


def test_filter_internal_stack_removes_package_frames():
    registry = state.get_registry()
    registry.config = Config(stack_severity_level=Severity.LOW)
    unfiltered = new_error(Domain.USER, Severity.LOW, 400, "U1", "minor")
    registry.config = Config(stack_severity_level=Severity.LOW, filter_internal_stack=True)
    filtered = new_error(Domain.USER, Severity.LOW, 400, "U1", "minor")
    assert "in _create" in unfiltered.stack
    assert "in _create" not in filtered.stack
    assert "test_filter_internal_stack_removes_package_frames" in filtered.stack


def test_to_dict_debug_info_for_high_severity():
    err = new_db_error("E_DB", "down", {"table": "users"})
    data = err.to_dict(False)
    assert data["debug_info"] == {"stack": err.stack}
    assert data["stack"] == err.stack
    assert data["metadata"] == {"table": "users"}
    assert data["severity"] == int(Severity.HIGH)


def test_to_dict_debug_mode_for_low_severity():
    state.get_registry().config = Config(stack_severity_level=Severity.LOW)
    err = wrap_error(ValueError("boom"), Domain.USER, Severity.LOW, 400, "U1", "minor")
    plain = err.to_dict(False)
    assert "debug_info" not in plain
    assert plain["underlying_error"] == "boom"
    assert err.to_dict(True)["debug_info"] == {"stack": err.stack}


def test_dict_round_trip():
    ctx = CorrelationContext().with_session_id("s-1")
    err = wrap_error(ValueError("boom"), Domain.DB, Severity.HIGH, 500, "DB_2", "lost")
    err.session_id = ctx.session_id
    restored = Error.from_dict(err.to_dict(True))
    assert restored.id == err.id
    assert restored.timestamp == err.timestamp
    assert restored.stack == err.stack
    assert restored.session_id == "s-1"
    assert restored.severity == Severity.HIGH
    assert str(restored) == str(err)