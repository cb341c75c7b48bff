import logging
from typing import List

from sqlalchemy import func
from sqlalchemy import select as sqlalchemy_select

from devicehub.db.base import async_session_maker
from devicehub.domains.device.interfaces.fault_record_source import FaultRecordSource
from devicehub.domains.device.models.device_model import FaultRecord
from devicehub.domains.device.models.results import FaultCodeStat

logger = logging.getLogger(__name__)


class SQLModelFaultRecordSource(FaultRecordSource):
    """故障記錄來源的 SQLModel 實現"""

    def __init__(self, session_factory=async_session_maker):
        self._session_factory = session_factory

    async def get_fault_records_grouped_by_code(self) -> List[FaultCodeStat]:
        async with self._session_factory() as session:
            stmt = (
                sqlalchemy_select(
                    FaultRecord.fault_code,
                    func.count(FaultRecord.id),
                    func.coalesce(func.avg(FaultRecord.downtime_duration), 0),
                )
                .group_by(FaultRecord.fault_code)
                .order_by(FaultRecord.fault_code)
            )
            result = await session.execute(stmt)
            rows = result.all()

        logger.debug(f"Fetched fault statistics for {len(rows)} fault codes")
        # AVG 可能是 float 或 Decimal，統一為保留兩位小數的 float
        return [
            FaultCodeStat(
                fault_code=code,
                fault_count=int(count),
                avg_fix_time_minutes=round(float(avg), 2),
            )
            for code, count, avg in rows
        ]
