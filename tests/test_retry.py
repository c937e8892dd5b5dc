"""Unit tests for RetryExecutor and the SheetsClient wrapper; no network required."""
import socket
import ssl
from unittest.mock import MagicMock, patch

import httplib2
import pytest
from googleapiclient.errors import HttpError

from data.connection import SheetsClient, build_sheets_service
from data.errors import NotFoundError, RemoteStoreError, RemoteTransientError
from data.retry import RetryExecutor, http_status, is_transient


def _http_error(status: int) -> HttpError:
    return HttpError(httplib2.Response({"status": str(status)}), b"")


def _executor(attempts: int = 3) -> RetryExecutor:
    return RetryExecutor(attempts=attempts, backoff=0, max_backoff=0)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassification:
    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_throttling_and_server_errors_are_transient(self, status):
        """429 and 5xx are retried."""
        assert is_transient(_http_error(status))

    @pytest.mark.parametrize("status", [400, 403, 404])
    def test_client_errors_are_not_transient(self, status):
        """4xx other than 429 is final."""
        assert not is_transient(_http_error(status))

    def test_network_errors_are_transient(self):
        """Socket, DNS, SSL and httplib2 transport failures are all retried."""
        assert is_transient(ConnectionError("reset"))
        assert is_transient(TimeoutError())
        assert is_transient(socket.gaierror(-2, "Name or service not known"))
        assert is_transient(ssl.SSLError("handshake failed"))
        assert is_transient(httplib2.ServerNotFoundError("no dns"))

    def test_other_exceptions_are_not_transient(self):
        """Programming errors are never retried."""
        assert not is_transient(ValueError("bad"))

    def test_http_status_reads_response(self):
        """http_status reads the status off an HttpError only."""
        assert http_status(_http_error(503)) == 503
        assert http_status(ValueError()) is None


# ---------------------------------------------------------------------------
# RetryExecutor
# ---------------------------------------------------------------------------


class TestRetryExecutor:
    @pytest.mark.asyncio
    async def test_returns_result_first_try(self):
        """A successful call runs once."""
        fn = MagicMock(return_value={"values": []})
        assert await _executor().run(fn, description="get") == {"values": []}
        fn.assert_called_once()

    @pytest.mark.asyncio
    async def test_retries_transient_then_succeeds(self):
        """Transient failures are retried until one succeeds."""
        fn = MagicMock(side_effect=[_http_error(503), _http_error(429), {"ok": True}])
        assert await _executor().run(fn) == {"ok": True}
        assert fn.call_count == 3

    @pytest.mark.asyncio
    async def test_transient_failure_exhausts_attempts(self):
        """After the last attempt the failure surfaces as RemoteTransientError."""
        fn = MagicMock(side_effect=_http_error(503))
        with pytest.raises(RemoteTransientError) as exc_info:
            await _executor(attempts=3).run(fn, description="get companies")
        assert fn.call_count == 3
        assert exc_info.value.status_code == 503
        assert "get companies" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        """A 404 fails on the first attempt."""
        fn = MagicMock(side_effect=_http_error(404))
        with pytest.raises(RemoteStoreError) as exc_info:
            await _executor().run(fn)
        assert fn.call_count == 1
        assert exc_info.value.status_code == 404
        assert not isinstance(exc_info.value, RemoteTransientError)

    @pytest.mark.asyncio
    async def test_connection_error_becomes_transient_error(self):
        """A dropped connection is retried then reported as transient."""
        fn = MagicMock(side_effect=ConnectionError("reset by peer"))
        with pytest.raises(RemoteTransientError):
            await _executor(attempts=2).run(fn)
        assert fn.call_count == 2

    @pytest.mark.asyncio
    async def test_dns_error_becomes_transient_error(self):
        """A resolver failure is retried and surfaces as RemoteTransientError."""
        fn = MagicMock(side_effect=socket.gaierror(-2, "Name or service not known"))
        with pytest.raises(RemoteTransientError):
            await _executor(attempts=3).run(fn)
        assert fn.call_count == 3

    @pytest.mark.asyncio
    async def test_httplib2_error_becomes_transient_error(self):
        """httplib2 transport errors are retried then reported as transient."""
        fn = MagicMock(side_effect=httplib2.HttpLib2Error("connection dropped"))
        with pytest.raises(RemoteTransientError):
            await _executor(attempts=2).run(fn)
        assert fn.call_count == 2

    @pytest.mark.asyncio
    async def test_unrelated_exception_propagates_unchanged(self):
        """Non-remote exceptions pass through untouched."""
        fn = MagicMock(side_effect=KeyError("values"))
        with pytest.raises(KeyError):
            await _executor().run(fn)
        fn.assert_called_once()

    def test_attempts_floor_is_one(self):
        """At least one attempt is always made."""
        assert RetryExecutor(attempts=0).attempts == 1


# ---------------------------------------------------------------------------
# SheetsClient
# ---------------------------------------------------------------------------


class TestSheetsClient:
    def _client(self):
        service = MagicMock()
        return service, SheetsClient(service, _executor())

    @pytest.mark.asyncio
    async def test_get_returns_values(self):
        """get returns the values grid."""
        service, client = self._client()
        service.spreadsheets().values().get().execute.return_value = {"values": [["id", "name"]]}

        rows = await client.get("sheet-1", "'公司總表'!A:M")

        assert rows == [["id", "name"]]
        service.spreadsheets().values().get.assert_called_with(spreadsheetId="sheet-1", range="'公司總表'!A:M")

    @pytest.mark.asyncio
    async def test_get_missing_values_is_empty(self):
        """A response without values is an empty grid."""
        service, client = self._client()
        service.spreadsheets().values().get().execute.return_value = {"range": "A1:B1"}
        assert await client.get("sheet-1", "A1:B1") == []

    @pytest.mark.asyncio
    async def test_batch_get_pads_missing_ranges(self):
        """batchGet results are padded to one grid per requested range."""
        service, client = self._client()
        service.spreadsheets().values().batchGet().execute.return_value = {
            "valueRanges": [{"values": [["h"]]}]
        }
        result = await client.batch_get("sheet-1", ["A1:B1", "A5:B5"])
        assert result == [[["h"]], []]

    @pytest.mark.asyncio
    async def test_append_returns_updated_range(self):
        """append reports the range the rows landed in."""
        service, client = self._client()
        service.spreadsheets().values().append().execute.return_value = {
            "updates": {"updatedRange": "'公司總表'!A7:M7"}
        }
        updated = await client.append("sheet-1", "'公司總表'!A:M", [["COM1", "Acme"]])
        assert updated == "'公司總表'!A7:M7"
        kwargs = service.spreadsheets().values().append.call_args.kwargs
        assert kwargs["insertDataOption"] == "INSERT_ROWS"
        assert kwargs["valueInputOption"] == "USER_ENTERED"

    @pytest.mark.asyncio
    async def test_batch_update_body(self):
        """batch_update sends the data and value input option in one body."""
        service, client = self._client()
        service.spreadsheets().values().batchUpdate().execute.return_value = {}
        data = [{"range": "A2:B2", "values": [["x", "y"]]}]
        await client.batch_update("sheet-1", data, value_input_option="RAW")
        kwargs = service.spreadsheets().values().batchUpdate.call_args.kwargs
        assert kwargs["body"] == {"valueInputOption": "RAW", "data": data}

    @pytest.mark.asyncio
    async def test_delete_row_resolves_sheet_id_once(self):
        """The numeric sheet id is looked up once and reused."""
        service, client = self._client()
        service.spreadsheets().get().execute.return_value = {
            "sheets": [{"properties": {"title": "互動紀錄", "sheetId": 77}}]
        }
        service.spreadsheets().batchUpdate().execute.return_value = {}
        service.spreadsheets().get.reset_mock()

        await client.delete_row("sheet-1", "互動紀錄", 5)
        await client.delete_row("sheet-1", "互動紀錄", 6)

        assert service.spreadsheets().get.call_count == 1
        body = service.spreadsheets().batchUpdate.call_args.kwargs["body"]
        dimension = body["requests"][0]["deleteDimension"]["range"]
        assert dimension == {"sheetId": 77, "dimension": "ROWS", "startIndex": 5, "endIndex": 6}

    @pytest.mark.asyncio
    async def test_unknown_sheet_raises_not_found(self):
        """A sheet title missing from the workbook raises NotFoundError."""
        service, client = self._client()
        service.spreadsheets().get().execute.return_value = {"sheets": []}
        with pytest.raises(NotFoundError):
            await client.sheet_id("sheet-1", "不存在")

    @pytest.mark.asyncio
    async def test_remote_error_surfaces_as_store_error(self):
        """HttpError from a write becomes RemoteStoreError."""
        service, client = self._client()
        service.spreadsheets().values().update().execute.side_effect = _http_error(403)
        with pytest.raises(RemoteStoreError):
            await client.update("sheet-1", "A2:B2", [["x"]])


class TestBuildService:
    def test_missing_credentials_raises(self, monkeypatch):
        """No credentials path and no env var is an error."""
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
        with pytest.raises(RuntimeError, match="GOOGLE_APPLICATION_CREDENTIALS"):
            build_sheets_service(None)

    @patch("data.connection.build")
    @patch("data.connection.service_account.Credentials.from_service_account_file")
    def test_builds_sheets_v4_with_scopes(self, mock_creds, mock_build):
        """The service account is scoped to spreadsheets only."""
        mock_creds.return_value = "creds"
        build_sheets_service("/tmp/key.json")
        mock_creds.assert_called_once_with(
            "/tmp/key.json", scopes=["https://www.googleapis.com/auth/spreadsheets"]
        )
        mock_build.assert_called_once_with("sheets", "v4", credentials="creds", cache_discovery=False)
