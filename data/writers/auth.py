"""User roster writer."""
import logging
from typing import Any

from crm_config import SheetNames
from data.a1 import cell
from data.readers.auth import AuthReader
from data.writers.base import BaseWriter, check_row_index

logger = logging.getLogger(__name__)


class AuthWriter(BaseWriter):
    def __init__(self, sheets, cache, spreadsheet_id: str, auth_reader: AuthReader):
        super().__init__(sheets, cache, spreadsheet_id, auth_reader)
        self.auth_reader = auth_reader

    async def update_password(self, row_index: Any, new_hash: str) -> bool:
        """Overwrite the password hash (column B) of one roster row."""
        row_index = check_row_index(row_index)
        await self.sheets.update(
            self.spreadsheet_id, cell(SheetNames.USERS, "B", row_index), [[new_hash]], value_input_option="RAW"
        )
        self._commit(self.auth_reader)
        logger.info("Password updated for roster row %d", row_index)
        return True
