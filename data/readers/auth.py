"""User roster reader."""
from typing import List, Optional

from crm_config import LAST_COLUMN, SheetNames
from data.a1 import column_span
from data.cache import CacheKey
from data.parsers import cell
from data.readers.base import BaseReader
from schemas import User


def parse_user_row(row: list, row_index: int) -> Optional[User]:
    username = cell(row, 0)
    password_hash = cell(row, 1)
    if not username or not password_hash:
        return None
    return User(
        username=username,
        password_hash=password_hash,
        display_name=cell(row, 2),
        role=cell(row, 3).lower() or "sales",
        row_index=row_index,
    )


class AuthReader(BaseReader):
    CACHE_KEYS = (CacheKey.USERS,)

    @property
    def range(self) -> str:
        return column_span(SheetNames.USERS, LAST_COLUMN[SheetNames.USERS])

    async def get_users(self) -> List[User]:
        return await self._fetch_and_cache(CacheKey.USERS, self.range, parse_user_row)

    async def find_user(self, username: str) -> Optional[User]:
        if not username:
            return None
        for user in await self.get_users():
            if user.username == username:
                return user
        return None
