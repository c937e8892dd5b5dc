"""Company service: creation, cascade rename, activity listing and guarded deletion.

A company name is denormalised into every opportunity's customer_company
column. Renaming a company therefore rewrites those opportunities in one
batch after the company row itself is updated. The cascade is best effort:
its failure is reported in the audit entry, never raised, because the
primary update has already committed by then.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from crm_config import CLOSED_OPPORTUNITY_STATUSES
from data.errors import CascadeFailure, NotFoundError, ValidationError
from data.parsers import normalize_key, parse_datetime
from data.readers import CompanyReader, ConfigReader, ContactReader, InteractionReader, OpportunityReader
from data.writers import CompanyWriter, InteractionWriter, OpportunityWriter
from schemas import Company, CompanyWithActivity

logger = logging.getLogger(__name__)

SYSTEM_EVENT = "系統事件"
STAGE_CONFIG = "客戶階段"
RATING_CONFIG = "互動評級"
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

NEW_COMPANY_DEFAULTS = {
    "company_type": "未分類",
    "customer_stage": "01_初步接觸",
    "engagement_rating": "C",
}


class CompanyService:
    def __init__(
        self,
        company_reader: CompanyReader,
        contact_reader: ContactReader,
        opportunity_reader: OpportunityReader,
        interaction_reader: InteractionReader,
        config_reader: ConfigReader,
        company_writer: CompanyWriter,
        opportunity_writer: OpportunityWriter,
        interaction_writer: InteractionWriter,
    ):
        self.company_reader = company_reader
        self.contact_reader = contact_reader
        self.opportunity_reader = opportunity_reader
        self.interaction_reader = interaction_reader
        self.config_reader = config_reader
        self.company_writer = company_writer
        self.opportunity_writer = opportunity_writer
        self.interaction_writer = interaction_writer

    async def _log_company_interaction(self, company_id: str, title: str, summary: str, modifier: str) -> None:
        """Append a system-event interaction for a company. Failures are logged only."""
        try:
            await self.interaction_writer.create_interaction({
                "company_id": company_id,
                "event_type": SYSTEM_EVENT,
                "event_title": title,
                "content_summary": summary,
                "recorder": modifier,
            })
        except Exception as exc:
            logger.warning("Could not write company audit entry for %s: %s", company_id, exc)

    # ------------------------------------------------------------------
    # Create / update / delete
    # ------------------------------------------------------------------

    async def create_company(self, company_name: str, modifier: str) -> Dict[str, Any]:
        """Quick-create a company with default type, stage and rating.

        Returns:
            ``{"success": True, "data": {...}}``, or
            ``{"success": False, "reason": "EXISTS", "message": ..., "data": Company}``
            when the name is already taken (case-insensitive).
        """
        name = (company_name or "").strip()
        if not name:
            raise ValidationError("Company name must not be empty")

        existing = await self.company_reader.find_company_by_name(name)
        if existing is not None:
            return {"success": False, "reason": "EXISTS", "message": "公司已存在", "data": existing}

        created = await self.company_writer.get_or_create_company(name, {}, modifier, NEW_COMPANY_DEFAULTS)
        await self._log_company_interaction(created["id"], "公司建立", f'快速建立新公司 "{name}"', modifier)
        return {
            "success": True,
            "data": {**created, "company_id": created["id"], "company_name": created["name"]},
        }

    async def _describe_changes(self, original: Company, update: Dict[str, Any], renaming: bool) -> List[str]:
        config = await self.config_reader.get_system_config()

        def label(config_type: str, value: str) -> str:
            for item in config.get(config_type, []):
                if item.value == value:
                    return item.note
            return value or "N/A"

        changes = []
        if renaming:
            changes.append(f"公司名稱從 [{original.company_name}] 變更為 [{update['company_name'].strip()}]")
        stage = update.get("customer_stage")
        if stage and stage != original.customer_stage:
            changes.append(
                f"客戶階段從 [{label(STAGE_CONFIG, original.customer_stage)}] 更新為 [{label(STAGE_CONFIG, stage)}]"
            )
        rating = update.get("engagement_rating")
        if rating and rating != original.engagement_rating:
            changes.append(
                f"互動評級從 [{label(RATING_CONFIG, original.engagement_rating)}] 更新為 [{label(RATING_CONFIG, rating)}]"
            )
        return changes

    async def _cascade_rename(self, old_name: str, new_name: str, modifier: str) -> int:
        """Rewrite customer_company on every opportunity still carrying ``old_name``.

        Returns the number of rows the batch actually rewrote; items whose
        opportunity has left the sheet are not counted.
        """
        try:
            related = await self.opportunity_reader.get_opportunities_by_company(old_name)
            if not related:
                return 0
            items = [
                {
                    "row_index": opp.row_index,
                    "data": {"opportunity_id": opp.opportunity_id, "customer_company": new_name},
                }
                for opp in related
            ]
            result = await self.opportunity_writer.batch_update_opportunities(
                items, f"System (Cascade Update from {modifier})"
            )
            return result["updated"]
        except Exception as exc:
            raise CascadeFailure(str(exc)) from exc

    async def update_company(self, company_name: str, update: Dict[str, Any], modifier: str) -> Dict[str, Any]:
        """Update a company and propagate a rename to its opportunities.

        Args:
            company_name: Current name of the company.
            update: Partial ``{attribute: value}``; ``company_name`` renames.
            modifier: Display name recorded on every written row.

        Returns:
            The company writer's result, ``{"success": True, "id": ...}``.

        Raises:
            NotFoundError: No company has that name.
        """
        original = await self.company_reader.find_company_by_name(company_name)
        if original is None:
            raise NotFoundError(f"Company not found: {company_name}")

        new_name = (update.get("company_name") or "").strip()
        renaming = bool(new_name) and new_name != original.company_name
        if new_name:
            update = {**update, "company_name": new_name}
        changes = await self._describe_changes(original, update, renaming)

        result = await self.company_writer.update_company(original.company_name, update, modifier)

        if result.get("success") and renaming:
            logger.info("Company renamed %s -> %s; cascading to opportunities", original.company_name, new_name)
            try:
                count = await self._cascade_rename(original.company_name, new_name, modifier)
                if count:
                    changes.append(f"已自動同步更新 {count} 筆關聯機會案件")
            except CascadeFailure as exc:
                logger.error("Cascade update after renaming %s failed: %s", original.company_name, exc)
                changes.append(f"⚠️ 連動更新失敗: {exc}")

        if result.get("success") and changes:
            await self._log_company_interaction(original.company_id, "公司資料變更", "； ".join(changes), modifier)
        return result

    async def delete_company(self, company_name: str, modifier: str) -> Dict[str, Any]:
        """Delete a company unless any opportunity still references it."""
        if await self.opportunity_reader.get_opportunities_by_company(company_name):
            raise ValidationError(f"Cannot delete {company_name}: opportunities still reference it")
        company = await self.company_reader.find_company_by_name(company_name)
        result = await self.company_writer.delete_company(company.company_name if company else company_name)
        logger.info("Company %s deleted by %s", company_name, modifier)
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_company_list_with_activity(self) -> List[CompanyWithActivity]:
        """Companies with their latest activity and open-opportunity count, most active first."""
        companies, interactions, opportunities = await asyncio.gather(
            self.company_reader.get_company_list(),
            self.interaction_reader.get_interactions(),
            self.opportunity_reader.get_opportunities(),
        )

        activity: Dict[str, Optional[datetime]] = {}
        open_counts: Dict[str, int] = {}
        for company in companies:
            activity[company.company_id] = parse_datetime(company.last_update_time or company.created_time)
            open_counts[company.company_id] = 0

        id_by_name = {c.company_name: c.company_id for c in companies}
        company_of_opp: Dict[str, str] = {}
        for opp in opportunities:
            company_id = id_by_name.get(opp.customer_company)
            if company_id is None:
                continue
            company_of_opp[opp.opportunity_id] = company_id
            if opp.current_status not in CLOSED_OPPORTUNITY_STATUSES:
                open_counts[company_id] += 1

        for interaction in interactions:
            company_id = interaction.company_id or company_of_opp.get(interaction.opportunity_id)
            if not company_id or company_id not in activity:
                continue
            when = parse_datetime(interaction.interaction_time or interaction.created_time)
            if when is not None and (activity[company_id] is None or when > activity[company_id]):
                activity[company_id] = when

        result = [
            CompanyWithActivity(
                **company.model_dump(),
                last_activity=activity[company.company_id].isoformat() if activity[company.company_id] else None,
                opportunity_count=open_counts[company.company_id],
            )
            for company in companies
        ]
        result.sort(key=lambda c: parse_datetime(c.last_activity) or _OLDEST, reverse=True)
        return result

    async def get_company_details(self, company_name: str) -> Dict[str, Any]:
        """Company with its filed contacts, opportunities and interactions."""
        companies, contacts, opportunities, interactions = await asyncio.gather(
            self.company_reader.get_company_list(),
            self.contact_reader.get_contact_list(),
            self.opportunity_reader.get_opportunities(),
            self.interaction_reader.get_interactions(),
        )
        target = normalize_key(company_name)
        company = next((c for c in companies if normalize_key(c.company_name) == target), None)
        if company is None:
            raise NotFoundError(f"Company not found: {company_name}")

        related_opps = [o for o in opportunities if normalize_key(o.customer_company) == target]
        opp_ids = {o.opportunity_id for o in related_opps}
        return {
            "company_info": company,
            "contacts": [c for c in contacts if c.company_id == company.company_id],
            "opportunities": related_opps,
            "interactions": [
                i for i in interactions
                if i.company_id == company.company_id or (i.opportunity_id and i.opportunity_id in opp_ids)
            ],
            "potential_contacts": [],
        }
