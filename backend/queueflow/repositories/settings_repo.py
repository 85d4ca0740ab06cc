"""Settings Repository - Key/value system configuration"""
from typing import Dict, Iterable, Optional

from sqlalchemy import select

from .tables import SettingRecord
from .transaction import Transaction
from ..utils.time import utc_now


class SettingsRepository:
    """Repository for persisted settings, bound to a transaction"""

    def __init__(self, tx: Transaction):
        self.tx = tx

    async def get(self, key: str) -> Optional[str]:
        record = await self.tx.get(SettingRecord, key)
        return record.value if record else None

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        keys = list(keys)
        records = await self.tx.all(select(SettingRecord).where(SettingRecord.key.in_(keys)))
        found = {record.key: record.value for record in records}
        return {key: found.get(key) for key in keys}

    async def upsert(self, key: str, value: Optional[str]) -> None:
        """Insert or overwrite a setting"""
        record = await self.tx.get(SettingRecord, key)
        if record is None:
            await self.tx.add(SettingRecord(key=key, value=value, updated_at=utc_now()))
        else:
            record.value = value
            record.updated_at = utc_now()
            await self.tx.flush()
