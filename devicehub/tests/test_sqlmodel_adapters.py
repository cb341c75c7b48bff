"""
Tests for the SQLModel store, fault source and audit sink against a
temporary SQLite database
"""

from datetime import timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from devicehub.db.database import DatabaseManager
from devicehub.domains.common.exceptions import ConflictError, NotFoundError
from devicehub.domains.device.adapters.sqlmodel_device_repository import (
    SQLModelDeviceRepository,
)
from devicehub.domains.device.adapters.notifiers import RedisFaultNotifier
from devicehub.domains.device.adapters.sqlmodel_fault_record_source import (
    SQLModelFaultRecordSource,
)
from devicehub.domains.device.models.device_model import (
    Device,
    DeviceStatusAudit,
    FaultRecord,
)
from devicehub.domains.device.models.dto import DeviceUpdate
from devicehub.domains.device.services.factory import create_device_service

from conftest import FIXED_NOW


def _as_utc(value):
    """SQLite 讀回的時間可能不帶時區，統一視為 UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'devicehub.db'}")
    manager = DatabaseManager(engine)
    await manager.connect()
    assert manager.is_ready()
    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await manager.disconnect()


@pytest.fixture
def sql_service(session_factory, clock):
    return create_device_service(session_factory=session_factory, clock=clock)


def _device(device_id, **overrides):
    data = {
        "device_id": device_id,
        "device_name": f"Device {device_id}",
        "device_type": "ATM",
        "location": "Lobby",
        "branch": "North Branch",
        "status": "OFFLINE",
        "create_time": FIXED_NOW,
        "update_time": FIXED_NOW,
    }
    data.update(overrides)
    return Device(**data)


@pytest.mark.asyncio
async def test_insert_and_select(session_factory):
    repo = SQLModelDeviceRepository(session_factory)
    created = await repo.insert(_device("ATM-001"))

    assert created.id is not None
    assert (await repo.select_by_id(created.id)).device_id == "ATM-001"
    assert (await repo.select_by_device_id("ATM-001")).id == created.id
    assert await repo.select_by_id(999) is None


@pytest.mark.asyncio
async def test_insert_duplicate_device_id_conflicts(session_factory):
    repo = SQLModelDeviceRepository(session_factory)
    await repo.insert(_device("ATM-001"))
    with pytest.raises(ConflictError):
        await repo.insert(_device("ATM-001"))
    assert await repo.count_all() == 1


@pytest.mark.asyncio
async def test_queries_by_status_branch_and_type(session_factory):
    repo = SQLModelDeviceRepository(session_factory)
    await repo.insert(_device("ATM-001", status="ONLINE"))
    await repo.insert(_device("RT-001", device_type="ROUTER", branch="south branch"))
    await repo.insert(_device("TM-001", device_type="TERMINAL", branch=None))

    assert [d.device_id for d in await repo.select_by_status("ONLINE")] == ["ATM-001"]
    assert [d.device_id for d in await repo.select_by_branch("BRANCH")] == [
        "ATM-001",
        "RT-001",
    ]
    assert [d.device_id for d in await repo.select_by_device_type("ROUTER")] == ["RT-001"]


@pytest.mark.asyncio
async def test_counts_are_plain_ints(session_factory):
    repo = SQLModelDeviceRepository(session_factory)
    await repo.insert(_device("A", status="ONLINE", branch="North"))
    await repo.insert(_device("B", status="ONLINE", branch="North"))
    await repo.insert(_device("C", status="FAULT", branch="South"))

    total = await repo.count_all()
    by_status = await repo.count_by_status()
    by_branch = await repo.count_by_branch()

    assert total == 3 and type(total) is int
    assert [(c.status, c.count) for c in by_status] == [("FAULT", 1), ("ONLINE", 2)]
    assert [(b.branch, b.total, b.online) for b in by_branch] == [
        ("North", 2, 2),
        ("South", 1, 0),
    ]
    assert all(type(b.online) is int for b in by_branch)


@pytest.mark.asyncio
async def test_update_status_and_delete_report_affected_rows(session_factory):
    repo = SQLModelDeviceRepository(session_factory)
    created = await repo.insert(_device("ATM-001"))

    assert await repo.update_status(created.id, "MAINTENANCE", FIXED_NOW) == 1
    assert await repo.update_status(404, "MAINTENANCE", FIXED_NOW) == 0
    assert (await repo.select_by_id(created.id)).status == "MAINTENANCE"

    assert await repo.delete_by_id(created.id) == 1
    assert await repo.delete_by_id(created.id) == 0


@pytest.mark.asyncio
async def test_fault_records_grouped_by_code(session_factory):
    async with session_factory() as session:
        session.add_all(
            [
                FaultRecord(device_id="ATM-001", fault_code="E-CARD", downtime_duration=10),
                FaultRecord(device_id="ATM-001", fault_code="E-CARD", downtime_duration=10),
                FaultRecord(device_id="ATM-002", fault_code="E-CARD", downtime_duration=10),
                FaultRecord(device_id="ATM-002", fault_code="E-CASH", downtime_duration=20),
                FaultRecord(device_id="RT-001", fault_code="E-NET", downtime_duration=None),
            ]
        )
        await session.commit()

    rows = await SQLModelFaultRecordSource(session_factory).get_fault_records_grouped_by_code()

    assert [(r.fault_code, r.fault_count, r.avg_fix_time_minutes) for r in rows] == [
        ("E-CARD", 3, 10.0),
        ("E-CASH", 1, 20.0),
        ("E-NET", 1, 0.0),
    ]


@pytest.mark.asyncio
async def test_service_lifecycle_over_sql(sql_service, session_factory, make_device, clock):
    device = await sql_service.add_device(make_device(status="online"))
    assert device.status == "ONLINE"

    clock.advance(minutes=10)
    updated = await sql_service.update_device(device.id, DeviceUpdate(location="Vestibule"))
    assert updated.location == "Vestibule"
    assert _as_utc(updated.update_time) == clock.now

    assert await sql_service.mark_as_fault(device.id, "dispenser jam") is True
    assert await sql_service.mark_as_fault(device.id, "dispenser jam") is False

    async with session_factory() as session:
        result = await session.execute(select(DeviceStatusAudit))
        audits = list(result.scalars().all())
    assert [(a.device_id, a.old_status, a.new_status, a.reason) for a in audits] == [
        ("ATM-001", "ONLINE", "FAULT", "dispenser jam")
    ]

    await sql_service.delete_device(device.id)
    with pytest.raises(NotFoundError):
        await sql_service.get_device_by_id(device.id)


@pytest.mark.asyncio
async def test_service_statistics_over_sql(sql_service, make_device):
    await sql_service.add_device(make_device(device_id="A", status="ONLINE"))
    await sql_service.add_device(make_device(device_id="B"))

    stats = await sql_service.get_statistics()
    assert stats.total_devices == 2
    assert stats.online_rate == "50.00%"

    analysis = await sql_service.get_fault_analysis()
    assert analysis.total_faults == 0


@pytest.mark.asyncio
async def test_factory_uses_redis_notifier_when_client_given(session_factory, clock):
    service = create_device_service(
        session_factory=session_factory, redis_client=object(), clock=clock
    )
    assert isinstance(service.notification_sink, RedisFaultNotifier)


@pytest.mark.asyncio
async def test_default_clock_writes_timezone_aware_times(session_factory, make_device):
    service = create_device_service(session_factory=session_factory)

    device = await service.add_device(make_device(status="ONLINE"))
    assert device.create_time.tzinfo is not None

    assert await service.change_status(device.id, "maintenance", "firmware upgrade")
    updated = await service.update_device(device.id, DeviceUpdate(branch="West Branch"))
    assert updated.status == "MAINTENANCE"
    assert updated.branch == "West Branch"
    assert _as_utc(updated.update_time) >= _as_utc(device.create_time)

    async with session_factory() as session:
        result = await session.execute(select(DeviceStatusAudit))
        audit = result.scalar_one()
    assert _as_utc(audit.changed_at).tzinfo is not None
