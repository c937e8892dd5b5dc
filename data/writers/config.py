"""System config writer. Only ``SystemPref`` rows are written from code."""
import logging

from crm_config import SYSTEM_PREF_TYPE, SheetNames
from data.a1 import cell, column_span
from data.readers.config import ConfigReader
from data.writers.base import BaseWriter

logger = logging.getLogger(__name__)


class ConfigWriter(BaseWriter):
    def __init__(self, sheets, cache, spreadsheet_id: str, config_reader: ConfigReader):
        super().__init__(sheets, cache, spreadsheet_id, config_reader)
        self.config_reader = config_reader

    async def update_system_pref(self, key: str, value: str) -> bool:
        """Store ``value`` in the note column of the SystemPref row for ``key``, adding the row if needed."""
        rows = await self.sheets.get(self.spreadsheet_id, column_span(SheetNames.SYSTEM_CONFIG, "B"))
        target = None
        for i, row in enumerate(rows):
            if len(row) >= 2 and row[0] == SYSTEM_PREF_TYPE and row[1] == key:
                target = i + 1
                break

        if target is not None:
            await self.sheets.update(
                self.spreadsheet_id, cell(SheetNames.SYSTEM_CONFIG, "E", target), [[value]], value_input_option="RAW"
            )
        else:
            await self.sheets.append(
                self.spreadsheet_id,
                column_span(SheetNames.SYSTEM_CONFIG, "E"),
                [[SYSTEM_PREF_TYPE, key, "0", "TRUE", value]],
                value_input_option="RAW",
            )
        self._commit(self.config_reader)
        logger.info("System preference %s saved (%s)", key, "updated" if target else "appended")
        return True
