"""Remote sheet store connection.

Provides:
- build_sheets_service(): authenticated Sheets v4 resource (service account)
- SheetsClient: async facade over the blocking ``spreadsheets()`` resource

Usage:
    sheets = SheetsClient(build_sheets_service(settings.credentials_path))
    rows = await sheets.get(settings.spreadsheet_id, "'公司總表'!A:M")
"""
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from google.oauth2 import service_account
from googleapiclient.discovery import build

from crm_config import SCOPES
from data.errors import NotFoundError
from data.retry import RetryExecutor

logger = logging.getLogger(__name__)

Rows = List[List[Any]]


def build_sheets_service(credentials_path: Optional[str] = None):
    """Build a Sheets v4 client from a service-account key file."""
    creds_path = credentials_path or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    if not creds_path:
        raise RuntimeError(
            "GOOGLE_APPLICATION_CREDENTIALS environment variable is not set. "
            "Point it at a service-account key with access to the CRM spreadsheets."
        )
    creds = service_account.Credentials.from_service_account_file(creds_path, scopes=SCOPES)
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


class SheetsClient:
    """Every call runs through the retry executor; ``execute()`` happens in a worker thread."""

    def __init__(self, service, executor: Optional[RetryExecutor] = None):
        self._service = service
        self._executor = executor or RetryExecutor()
        self._sheet_ids: Dict[Tuple[str, str], int] = {}

    def _spreadsheets(self):
        return self._service.spreadsheets()

    async def _execute(self, request, description: str) -> Dict[str, Any]:
        response = await self._executor.run(request.execute, description=description)
        return response or {}

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    async def get(self, spreadsheet_id: str, range_: str) -> Rows:
        """Values in ``range_``; trailing blank cells and rows are omitted by the store."""
        request = self._spreadsheets().values().get(spreadsheetId=spreadsheet_id, range=range_)
        response = await self._execute(request, f"get {range_}")
        return response.get("values", [])

    async def batch_get(self, spreadsheet_id: str, ranges: List[str]) -> List[Rows]:
        request = self._spreadsheets().values().batchGet(spreadsheetId=spreadsheet_id, ranges=ranges)
        response = await self._execute(request, f"batchGet {len(ranges)} ranges")
        value_ranges = response.get("valueRanges", [])
        return [vr.get("values", []) for vr in value_ranges] + [[] for _ in range(len(ranges) - len(value_ranges))]

    async def update(
        self,
        spreadsheet_id: str,
        range_: str,
        values: Rows,
        value_input_option: str = "USER_ENTERED",
    ) -> Dict[str, Any]:
        request = self._spreadsheets().values().update(
            spreadsheetId=spreadsheet_id,
            range=range_,
            valueInputOption=value_input_option,
            body={"values": values},
        )
        return await self._execute(request, f"update {range_}")

    async def append(
        self,
        spreadsheet_id: str,
        range_: str,
        values: Rows,
        value_input_option: str = "USER_ENTERED",
    ) -> Optional[str]:
        """Append rows after the last row of the table; returns the updated A1 range."""
        request = self._spreadsheets().values().append(
            spreadsheetId=spreadsheet_id,
            range=range_,
            valueInputOption=value_input_option,
            insertDataOption="INSERT_ROWS",
            body={"values": values},
        )
        response = await self._execute(request, f"append {len(values)} rows to {range_}")
        return response.get("updates", {}).get("updatedRange")

    async def batch_update(
        self,
        spreadsheet_id: str,
        data: List[Dict[str, Any]],
        value_input_option: str = "USER_ENTERED",
    ) -> Dict[str, Any]:
        """Write several ``{"range", "values"}`` blocks in one request."""
        request = self._spreadsheets().values().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={"valueInputOption": value_input_option, "data": data},
        )
        return await self._execute(request, f"batchUpdate {len(data)} ranges")

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    async def sheet_id(self, spreadsheet_id: str, sheet_name: str) -> int:
        """Numeric id of a tab, resolved once per spreadsheet and cached."""
        key = (spreadsheet_id, sheet_name)
        if key not in self._sheet_ids:
            request = self._spreadsheets().get(spreadsheetId=spreadsheet_id, fields="sheets.properties")
            response = await self._execute(request, f"resolve sheets of {spreadsheet_id}")
            for sheet in response.get("sheets", []):
                props = sheet.get("properties", {})
                self._sheet_ids[(spreadsheet_id, props.get("title"))] = props.get("sheetId")
        if key not in self._sheet_ids:
            raise NotFoundError(f"Sheet '{sheet_name}' not found in spreadsheet {spreadsheet_id}")
        return self._sheet_ids[key]

    async def delete_row(self, spreadsheet_id: str, sheet_name: str, row_index: int) -> None:
        """Physically remove one 1-based row; every row below shifts up by one."""
        gid = await self.sheet_id(spreadsheet_id, sheet_name)
        request = self._spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={
                "requests": [
                    {
                        "deleteDimension": {
                            "range": {
                                "sheetId": gid,
                                "dimension": "ROWS",
                                "startIndex": row_index - 1,
                                "endIndex": row_index,
                            }
                        }
                    }
                ]
            },
        )
        await self._execute(request, f"delete row {row_index} of {sheet_name}")
        logger.info("Deleted row %d of %s", row_index, sheet_name)
