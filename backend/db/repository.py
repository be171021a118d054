"""
Inventory persistence.

Two interchangeable repositories share one async interface:
- SqlInventoryRepository: one row per item in the ``inventory`` table,
  a short-lived pooled session per call.
- MemoryInventoryRepository: process-local ordered collection with an
  id counter.

Lookups that find nothing return None; callers turn that into a 404.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine

from core.config import Settings
from db.database import build_engine, build_session_maker, create_db_and_tables
from db.inventory_item import InventoryItem as InventoryItemModel

logger = logging.getLogger(__name__)


@dataclass
class InventoryItem:
    id: int
    name: str
    description: str = ""
    photo_filename: Optional[str] = None

    @property
    def photo_url(self) -> Optional[str]:
        if not self.photo_filename:
            return None
        return f"/inventory/{self.id}/photo"

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "photo_filename": self.photo_filename,
            "photo": self.photo_url,
        }


class InventoryRepository:
    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def insert(self, name: str, description: str = "", photo_filename: Optional[str] = None) -> int:
        raise NotImplementedError

    async def get_by_id(self, item_id: int) -> Optional[InventoryItem]:
        raise NotImplementedError

    async def list_all(self) -> List[InventoryItem]:
        raise NotImplementedError

    async def update_fields(
        self,
        item_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[InventoryItem]:
        raise NotImplementedError

    async def update_photo(self, item_id: int, filename: Optional[str]) -> Optional[InventoryItem]:
        raise NotImplementedError

    async def delete(self, item_id: int) -> Optional[InventoryItem]:
        raise NotImplementedError


def _from_model(m: InventoryItemModel) -> InventoryItem:
    return InventoryItem(**m.to_schema)


class SqlInventoryRepository(InventoryRepository):
    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_maker = build_session_maker(engine)

    async def init(self) -> None:
        await create_db_and_tables(self.engine)

    async def close(self) -> None:
        await self.engine.dispose()

    async def _get_model(self, db, item_id: int) -> Optional[InventoryItemModel]:
        res = await db.execute(select(InventoryItemModel).where(InventoryItemModel.id == item_id))
        return res.scalar_one_or_none()

    async def insert(self, name: str, description: str = "", photo_filename: Optional[str] = None) -> int:
        async with self.session_maker() as db:
            m = InventoryItemModel(name=name, description=description or "", photo_filename=photo_filename)
            db.add(m)
            await db.commit()
            return m.id

    async def get_by_id(self, item_id: int) -> Optional[InventoryItem]:
        async with self.session_maker() as db:
            m = await self._get_model(db, item_id)
            return _from_model(m) if m else None

    async def list_all(self) -> List[InventoryItem]:
        async with self.session_maker() as db:
            res = await db.execute(select(InventoryItemModel).order_by(InventoryItemModel.id.asc()))
            return [_from_model(m) for m in res.scalars().all()]

    async def update_fields(
        self,
        item_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[InventoryItem]:
        async with self.session_maker() as db:
            m = await self._get_model(db, item_id)
            if not m:
                return None
            if name is not None:
                m.name = name
            if description is not None:
                m.description = description
            await db.commit()
            await db.refresh(m)
            return _from_model(m)

    async def update_photo(self, item_id: int, filename: Optional[str]) -> Optional[InventoryItem]:
        async with self.session_maker() as db:
            m = await self._get_model(db, item_id)
            if not m:
                return None
            m.photo_filename = filename
            await db.commit()
            await db.refresh(m)
            return _from_model(m)

    async def delete(self, item_id: int) -> Optional[InventoryItem]:
        async with self.session_maker() as db:
            m = await self._get_model(db, item_id)
            if not m:
                return None
            item = _from_model(m)
            await db.delete(m)
            await db.commit()
            return item


class MemoryInventoryRepository(InventoryRepository):
    def __init__(self):
        self._items: Dict[int, InventoryItem] = {}
        self._next_id = 1

    async def insert(self, name: str, description: str = "", photo_filename: Optional[str] = None) -> int:
        item_id = self._next_id
        self._next_id += 1
        self._items[item_id] = InventoryItem(
            id=item_id,
            name=name,
            description=description or "",
            photo_filename=photo_filename,
        )
        return item_id

    async def get_by_id(self, item_id: int) -> Optional[InventoryItem]:
        item = self._items.get(item_id)
        return dataclasses.replace(item) if item else None

    async def list_all(self) -> List[InventoryItem]:
        # ids are handed out in increasing order, so insertion order is id order
        return [dataclasses.replace(item) for item in self._items.values()]

    async def update_fields(
        self,
        item_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[InventoryItem]:
        item = self._items.get(item_id)
        if not item:
            return None
        if name is not None:
            item.name = name
        if description is not None:
            item.description = description
        return dataclasses.replace(item)

    async def update_photo(self, item_id: int, filename: Optional[str]) -> Optional[InventoryItem]:
        item = self._items.get(item_id)
        if not item:
            return None
        item.photo_filename = filename
        return dataclasses.replace(item)

    async def delete(self, item_id: int) -> Optional[InventoryItem]:
        return self._items.pop(item_id, None)


def build_repository(settings: Settings) -> InventoryRepository:
    if settings.store == "sql":
        logger.info("Using SQL inventory store")
        return SqlInventoryRepository(build_engine(settings))
    logger.info("Using in-memory inventory store")
    return MemoryInventoryRepository()
