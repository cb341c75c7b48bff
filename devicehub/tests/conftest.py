from datetime import datetime, timedelta, timezone

import pytest

from devicehub.domains.device.adapters.memory_device_repository import (
    InMemoryDeviceRepository,
    InMemoryFaultRecordSource,
)
from devicehub.domains.device.interfaces.sinks import AuditSink, NotificationSink
from devicehub.domains.device.models.dto import DeviceCreate
from devicehub.domains.device.services.device_service import DeviceLifecycleService

FIXED_NOW = datetime(2026, 10, 19, 9, 30, 0, tzinfo=timezone.utc)


class Clock:
    """可手動推進的時鐘"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingAuditSink(AuditSink):
    def __init__(self):
        self.entries = []

    async def record(self, device_id, old_status, new_status, reason, timestamp):
        self.entries.append((device_id, old_status, new_status, reason, timestamp))


class RecordingNotifier(NotificationSink):
    def __init__(self):
        self.calls = []

    async def notify_fault(self, device, reason, timestamp):
        self.calls.append((device, reason, timestamp))


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def repository():
    return InMemoryDeviceRepository()


@pytest.fixture
def fault_source():
    return InMemoryFaultRecordSource()


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(repository, fault_source, audit_sink, notifier, clock):
    return DeviceLifecycleService(
        device_repository=repository,
        fault_record_source=fault_source,
        audit_sink=audit_sink,
        notification_sink=notifier,
        clock=clock,
    )


@pytest.fixture
def make_device():
    """建立 DeviceCreate，預設為一台有效的 ATM"""

    def _make(**overrides) -> DeviceCreate:
        data = {
            "device_id": "ATM-001",
            "device_name": "Lobby ATM",
            "device_type": "ATM",
            "vendor": "NCR",
            "model": "SelfServ 84",
            "ip_address": "10.0.1.15",
            "location": "Main lobby",
            "branch": "North Branch",
        }
        data.update(overrides)
        return DeviceCreate(**data)

    return _make
