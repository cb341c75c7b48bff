import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import case, delete, func, update
from sqlalchemy import select as sqlalchemy_select
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from devicehub.db.base import async_session_maker
from devicehub.domains.common.exceptions import ConflictError
from devicehub.domains.device.interfaces.device_repository import DeviceRepository
from devicehub.domains.device.models.device_model import Device, DeviceStatus
from devicehub.domains.device.models.results import BranchStat, StatusCount

logger = logging.getLogger(__name__)


class SQLModelDeviceRepository(DeviceRepository):
    """SQLModel 設備存儲庫實現"""

    def __init__(self, session_factory=async_session_maker):
        self._session_factory = session_factory

    async def insert(self, device: Device) -> Device:
        logger.info(f"Attempting to create device: {device.device_id}")
        async with self._session_factory() as session:
            try:
                session.add(device)
                await session.commit()
                await session.refresh(device)
            except IntegrityError as e:
                await session.rollback()
                logger.warning(f"Duplicate device_id '{device.device_id}': {e}")
                raise ConflictError(
                    f"Device already exists, device_id: {device.device_id}"
                ) from e
            except Exception as e:
                await session.rollback()
                logger.error(
                    f"Error creating device '{device.device_id}': {e}", exc_info=True
                )
                raise
        logger.info(f"Successfully created device '{device.device_id}' with ID {device.id}")
        return device

    async def select_all(self) -> List[Device]:
        async with self._session_factory() as session:
            stmt = select(Device).order_by(Device.update_time.desc(), Device.id)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def select_by_id(self, id: int) -> Optional[Device]:
        logger.debug(f"Fetching device with ID: {id}")
        async with self._session_factory() as session:
            stmt = select(Device).where(Device.id == id)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def select_by_device_id(self, device_id: str) -> Optional[Device]:
        logger.debug(f"Fetching device with device_id: {device_id}")
        async with self._session_factory() as session:
            stmt = select(Device).where(Device.device_id == device_id)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def select_by_status(self, status: str) -> List[Device]:
        async with self._session_factory() as session:
            stmt = select(Device).where(Device.status == status).order_by(Device.id)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def select_by_branch(self, pattern: str) -> List[Device]:
        async with self._session_factory() as session:
            stmt = (
                select(Device)
                .where(Device.branch.ilike(f"%{pattern}%"))
                .order_by(Device.id)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def select_by_device_type(self, device_type: str) -> List[Device]:
        async with self._session_factory() as session:
            stmt = (
                select(Device)
                .where(Device.device_type == device_type)
                .order_by(Device.id)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def update(self, id: int, patch: Dict[str, Any]) -> int:
        logger.debug(f"Updating device ID {id} with fields {sorted(patch)}")
        async with self._session_factory() as session:
            try:
                stmt = update(Device).where(Device.id == id).values(**patch)
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount
            except Exception as e:
                await session.rollback()
                logger.error(f"Error updating device with ID {id}: {e}", exc_info=True)
                raise

    async def update_status(self, id: int, status: str, update_time: datetime) -> int:
        async with self._session_factory() as session:
            try:
                stmt = (
                    update(Device)
                    .where(Device.id == id)
                    .values(status=status, update_time=update_time)
                )
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount
            except Exception as e:
                await session.rollback()
                logger.error(
                    f"Error updating status of device ID {id}: {e}", exc_info=True
                )
                raise

    async def delete_by_id(self, id: int) -> int:
        logger.debug(f"Removing device with ID: {id}")
        async with self._session_factory() as session:
            try:
                result = await session.execute(delete(Device).where(Device.id == id))
                await session.commit()
                return result.rowcount
            except Exception as e:
                await session.rollback()
                logger.error(f"Error removing device with ID {id}: {e}", exc_info=True)
                raise

    async def count_all(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                sqlalchemy_select(func.count()).select_from(Device)
            )
            return int(result.scalar_one())

    async def count_by_status(self) -> List[StatusCount]:
        async with self._session_factory() as session:
            stmt = (
                sqlalchemy_select(Device.status, func.count(Device.id))
                .group_by(Device.status)
                .order_by(Device.status)
            )
            result = await session.execute(stmt)
            return [
                StatusCount(status=status, count=int(count))
                for status, count in result.all()
            ]

    async def count_by_branch(self) -> List[BranchStat]:
        online = func.sum(case((Device.status == DeviceStatus.ONLINE.value, 1), else_=0))
        async with self._session_factory() as session:
            stmt = (
                sqlalchemy_select(Device.branch, func.count(Device.id), online)
                .group_by(Device.branch)
                .order_by(Device.branch)
            )
            result = await session.execute(stmt)
            # 不同資料庫的 SUM 可能回傳 Decimal，統一轉成 int
            return [
                BranchStat(branch=branch, total=int(total), online=int(online_count or 0))
                for branch, total, online_count in result.all()
            ]
