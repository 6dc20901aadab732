import pytest

from errtrail import state
from errtrail.config import Config
from errtrail.consts import CallbackMode, Domain, Severity
from errtrail.logs import Logger
from errtrail.records import ErrorRecord


class RecordingLogger(Logger):
    def __init__(self):
        self.entries = []

    def debug(self, msg, fields=None):
        self.entries.append(("debug", msg))

    def info(self, msg, fields=None):
        self.entries.append(("info", msg))

    def warn(self, msg, fields=None):
        self.entries.append(("warn", msg))

    def error(self, msg, fields=None):
        self.entries.append(("error", msg))

    def fatal(self, msg, fields=None):
        self.entries.append(("fatal", msg))


@pytest.fixture(autouse=True)
def fresh_state():
    state.reset()
    yield
    state.reset()


def test_registry_is_shared():
    first = state.get_registry()
    first.set_logger(RecordingLogger())
    first.add_domain("shared-domain")
    assert state.get_registry().has_domain("shared-domain") is True


def test_registry_uses_default_file():
    assert state.get_registry().filename == "errors.json"


def test_reset_creates_new_objects():
    registry = state.get_registry()
    manager = state.get_callback_manager()
    state.reset()
    assert state.get_registry() is not registry
    assert state.get_callback_manager() is not manager


def test_default_logger_writes_std_format(capsys):
    state.reset()
    logger = state.get_logger()
    assert state.get_logger() is logger
    logger.info("hello", {"k": 1})
    captured = capsys.readouterr()
    assert "[INFO] hello {k: 1}" in captured.out + captured.err


def test_set_logger_replaces_shared_logger():
    logger = RecordingLogger()
    state.set_logger(logger)
    assert state.get_logger() is logger
    state.reset()
    assert state.get_logger() is not logger


def test_registry_runs_shared_callbacks():
    registry = state.get_registry()
    registry.set_logger(RecordingLogger())
    registry.config = Config(callback_mode=CallbackMode.SYNC)
    seen = []
    state.get_callback_manager().register_callback("collect", lambda rec: seen.append(rec.id))
    registry.register(
        ErrorRecord(
            id="shared-1",
            code="E_STATE",
            domain=Domain.SYSTEM,
            severity=Severity.LOW,
            status=200,
            message="shared",
        )
    )
    assert seen == ["shared-1"]
    assert registry.lookup("shared-1").code == "E_STATE"


def test_reset_discards_stored_records():
    registry = state.get_registry()
    registry.set_logger(RecordingLogger())
    registry.register(
        ErrorRecord(
            id="gone",
            code="E_STATE",
            domain=Domain.SYSTEM,
            severity=Severity.LOW,
            status=200,
            message="temporary",
        )
    )
    state.reset()
    assert state.get_registry().lookup("gone") is None