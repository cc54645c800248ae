import pytest

from ridguard.alerts import AlertDecisionEngine
from ridguard.audit import PrivacyAuditLog
from ridguard.settings import MemoryStore, SettingsStore


class FakeClock:
    """Manually advanced epoch-ms clock."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(clock):
    return SettingsStore(MemoryStore(), clock=clock)


@pytest.fixture
def engine(settings, clock):
    return AlertDecisionEngine(settings, clock=clock)


@pytest.fixture
def audit_log(settings, clock, tmp_path):
    return PrivacyAuditLog(settings, log_dir=str(tmp_path / "logs"), clock=clock)
