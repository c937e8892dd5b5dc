"""Sheets CRM command-line entry point.

Builds the container from the environment and runs one operation against the
live spreadsheets.

Usage:
  # Show the last-write stamp and the configured spreadsheets
  python main.py status

  # List companies with their latest activity
  python main.py companies --limit 20

  # Rename a company and cascade the new name to its opportunities
  python main.py rename-company --old "舊公司" --new "新公司" --modifier alice

  # Drop every cached table in this process and re-read companies
  python main.py invalidate-cache
"""
import argparse
import asyncio
import json
import logging
import sys

from container import Container, build_container
from crm_config import Settings
from data.errors import CRMDataError

logger = logging.getLogger(__name__)


async def run_status(container: Container) -> dict:
    status = container.system_service.get_system_status()
    settings = container.settings
    print(f"  Main spreadsheet:    {settings.spreadsheet_id}")
    print(f"  Product spreadsheet: {settings.product_spreadsheet_id or '(not set)'}")
    print(f"  Config spreadsheet:  {settings.config_spreadsheet_id}")
    print(f"  Users spreadsheet:   {settings.users_spreadsheet_id}")
    print(f"  Last write:          {status['last_write_timestamp']}")
    return status


async def run_companies(container: Container, limit: int = 20) -> list:
    """Print companies ordered by most recent activity."""
    companies = await container.company_service.get_company_list_with_activity()
    for company in companies[:limit]:
        print(
            f"  {company.company_id:<20} {company.company_name:<30} "
            f"open={company.opportunity_count} last={company.last_activity or '-'}"
        )
    print(f"  {len(companies)} companies total")
    return companies


async def run_rename_company(container: Container, old_name: str, new_name: str, modifier: str) -> dict:
    """Rename a company; the service cascades the name to linked opportunities."""
    print(f"\nRenaming {old_name!r} -> {new_name!r} (by {modifier})...")
    result = await container.company_service.update_company(old_name, {"company_name": new_name}, modifier)
    print(json.dumps(result, ensure_ascii=False, indent=2, default=str))
    return result


async def run_invalidate_cache(container: Container) -> dict:
    result = container.system_service.invalidate_cache()
    print(f"  {result['message']}")
    companies = await container.company_reader.get_company_list()
    print(f"  Re-read {len(companies)} companies")
    return result


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Google Sheets CRM data-access tools"
    )
    parser.add_argument("--verbose", "-v", action="store_true", default=False, help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show configured spreadsheets and the last-write stamp")

    companies = sub.add_parser("companies", help="List companies with their latest activity")
    companies.add_argument("--limit", type=int, default=20, help="Max companies to print")

    rename = sub.add_parser("rename-company", help="Rename a company and update its opportunities")
    rename.add_argument("--old", required=True, help="Current company name")
    rename.add_argument("--new", required=True, help="New company name")
    rename.add_argument("--modifier", default="System", help="Name recorded as last modifier")

    sub.add_parser("invalidate-cache", help="Clear every cached table")

    return parser


async def _dispatch(args: argparse.Namespace) -> None:
    container = build_container(Settings.from_env())

    if args.command == "status":
        await run_status(container)
    elif args.command == "companies":
        await run_companies(container, limit=args.limit)
    elif args.command == "rename-company":
        await run_rename_company(container, args.old, args.new, args.modifier)
    elif args.command == "invalidate-cache":
        await run_invalidate_cache(container)


if __name__ == "__main__":
    parser = _build_arg_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_dispatch(args))
    except CRMDataError as e:
        logger.error("%s failed: %s", args.command, e)
        sys.exit(2)
