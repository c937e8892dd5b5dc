"""Container wiring, settings loading and the command-line entry point."""
from unittest.mock import MagicMock, patch

import pytest

import main
from container import build_container
from crm_config import CompanyFields, OpportunityFields, Settings, SheetNames


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------


class TestBuildContainer:
    def test_one_cache_shared_by_every_reader(self, container):
        """Every reader and the system service share one cache."""
        readers = [
            container.company_reader, container.contact_reader, container.opportunity_reader,
            container.interaction_reader, container.product_reader, container.config_reader,
            container.auth_reader,
        ]
        assert all(r.cache is container.cache for r in readers)
        assert container.system_service.cache is container.cache

    def test_writers_paired_with_readers(self, container):
        """Each writer holds the reader whose cache it clears."""
        assert container.company_writer.company_reader is container.company_reader
        assert container.contact_writer.contact_reader is container.contact_reader
        assert container.interaction_writer.interaction_reader is container.interaction_reader
        assert container.config_writer.config_reader is container.config_reader

    def test_spreadsheet_routing(self, container, settings):
        """Product readers and writers go to the product spreadsheet; the rest to the main one."""
        assert container.company_reader.spreadsheet_id == settings.spreadsheet_id
        assert container.product_reader.spreadsheet_id == settings.product_spreadsheet_id
        assert container.product_writer.spreadsheet_id == settings.product_spreadsheet_id
        assert container.config_reader.spreadsheet_id == settings.spreadsheet_id
        assert container.auth_reader.spreadsheet_id == settings.spreadsheet_id

    def test_separate_config_and_users_spreadsheets(self, crm, settings):
        """Config and users can live in their own spreadsheets."""
        c = build_container(
            settings.model_copy(update={"system_setting_spreadsheet_id": "cfg", "auth_spreadsheet_id": "users"}),
            sheets=crm.sheets,
        )
        assert c.config_reader.spreadsheet_id == "cfg"
        assert c.config_writer.spreadsheet_id == "cfg"
        assert c.auth_reader.spreadsheet_id == "users"

    def test_page_sizes_from_settings(self, crm, settings):
        """Page sizes come from settings."""
        c = build_container(
            settings.model_copy(update={"contacts_per_page": 5, "opportunities_per_page": 7, "interactions_per_page": 3}),
            sheets=crm.sheets,
        )
        assert c.contact_reader.page_size == 5
        assert c.opportunity_reader.page_size == 7
        assert c.interaction_service.page_size == 3

    @pytest.mark.asyncio
    async def test_dashboard_wired_into_contact_service(self, container):
        """The contact service gets its dashboard provider from the container."""
        data = await container.contact_service.get_dashboard_data()
        assert data["stats"]["raw_contacts"] == 0

    @patch("container.build_sheets_service")
    def test_builds_client_when_not_given(self, mock_build, settings):
        """Without a client the container builds one from the credentials path."""
        mock_build.return_value = MagicMock()
        c = build_container(settings.model_copy(update={"credentials_path": "/tmp/key.json", "retry_attempts": 5}))

        mock_build.assert_called_once_with("/tmp/key.json")
        assert c.sheets._service is mock_build.return_value
        assert c.sheets._executor.attempts == 5


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettingsFromEnv:
    @patch("crm_config.load_dotenv")
    def test_reads_environment(self, _dotenv, monkeypatch):
        """Settings come from the environment; config and users fall back to the main id."""
        monkeypatch.setenv("SPREADSHEET_ID", "main")
        monkeypatch.setenv("PRODUCT_SPREADSHEET_ID", "products")
        monkeypatch.setenv("CRM_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("SHEETS_RETRY_ATTEMPTS", "4")
        monkeypatch.delenv("SYSTEM_SETTING_SPREADSHEET_ID", raising=False)
        monkeypatch.delenv("AUTH_SPREADSHEET_ID", raising=False)

        settings = Settings.from_env()

        assert settings.spreadsheet_id == "main"
        assert settings.product_spreadsheet_id == "products"
        assert settings.cache_ttl_seconds == 60.0
        assert settings.retry_attempts == 4
        assert settings.config_spreadsheet_id == "main"
        assert settings.users_spreadsheet_id == "main"

    @patch("crm_config.load_dotenv")
    def test_missing_spreadsheet_id_raises(self, _dotenv, monkeypatch):
        """SPREADSHEET_ID is required."""
        monkeypatch.delenv("SPREADSHEET_ID", raising=False)
        with pytest.raises(RuntimeError, match="SPREADSHEET_ID"):
            Settings.from_env()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestArgParser:
    def test_rename_company_args(self):
        """rename-company takes --old and --new; modifier defaults to System."""
        args = main._build_arg_parser().parse_args(["rename-company", "--old", "A", "--new", "B"])
        assert (args.command, args.old, args.new, args.modifier) == ("rename-company", "A", "B", "System")

    def test_companies_limit(self):
        """The companies command accepts --limit and the global -v flag."""
        args = main._build_arg_parser().parse_args(["-v", "companies", "--limit", "5"])
        assert args.command == "companies"
        assert args.limit == 5
        assert args.verbose is True

    def test_no_command(self):
        """No subcommand leaves command unset."""
        assert main._build_arg_parser().parse_args([]).command is None

    def test_rename_requires_names(self):
        """rename-company without --new exits."""
        with pytest.raises(SystemExit):
            main._build_arg_parser().parse_args(["rename-company", "--old", "A"])


class TestCommands:
    @pytest.mark.asyncio
    async def test_status(self, container, settings, capsys):
        """status prints both spreadsheet ids."""
        status = await main.run_status(container)
        out = capsys.readouterr().out
        assert status["last_write_timestamp"] == 0
        assert settings.spreadsheet_id in out
        assert settings.product_spreadsheet_id in out

    @pytest.mark.asyncio
    async def test_companies(self, crm, container, capsys):
        """companies prints the total even when the listing is limited."""
        crm.add_company("COM1", "Acme")
        crm.add_company("COM2", "Other")

        companies = await main.run_companies(container, limit=1)

        out = capsys.readouterr().out
        assert len(companies) == 2
        assert "2 companies total" in out

    @pytest.mark.asyncio
    async def test_rename_company(self, crm, container, capsys):
        """rename-company renames the company and its opportunities."""
        crm.add_company("COM1", "Acme")
        crm.add_opportunity("OPP1", "Deal", customer_company="Acme")

        result = await main.run_rename_company(container, "Acme", "Acme Corp", "amy")

        assert result["success"] is True
        assert crm.rows(SheetNames.COMPANY_LIST)[1][CompanyFields.NAME] == "Acme Corp"
        header = crm.rows(SheetNames.OPPORTUNITIES)[0]
        assert crm.rows(SheetNames.OPPORTUNITIES)[1][header.index(OpportunityFields.CUSTOMER)] == "Acme Corp"
        assert "COM1" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_invalidate_cache(self, crm, container, capsys):
        """invalidate-cache forces the next read to see new rows."""
        crm.add_company("COM1", "Acme")
        await container.company_reader.get_company_list()
        crm.add_company("COM2", "Other")

        await main.run_invalidate_cache(container)

        assert "Re-read 2 companies" in capsys.readouterr().out
