from azure.cosmos import ContainerProxy
from pydantic import BaseModel, ValidationError
from typing import Callable, List, Optional, Type
from wellness.configuration.config import Config
from wellness.configuration.monitor import log_event, log_exception, log_metric, log_warning, start_span
from wellness.models.mod_availability import (
    SessionTemplate,
    WeeklyRule,
    AvailabilityException,
    BlockedDate,
    RuleSet
)
from wellness.models.mod_team import Profile

ContainerLookup = Callable[[str], ContainerProxy]

class StoreUnavailable(Exception):
    """A read against one of the availability record sets failed."""

    def __init__(self, record_set: str, cause: Optional[Exception] = None):
        self.record_set = record_set
        self.cause = cause
        message = f"Unable to read {record_set}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)

class MalformedRow(Exception):
    """A stored row is missing required fields or carries invalid values."""

    def __init__(self, record_set: str, row_id: Optional[str], reason: str):
        self.record_set = record_set
        self.row_id = row_id
        self.reason = reason
        super().__init__(f"Malformed {record_set} row {row_id}: {reason}")

class RuleStore:
    @staticmethod
    def _read_all(containers: ContainerLookup, container_key: str, query: str = "SELECT * FROM c", parameters=None) -> list:
        try:
            container = containers(container_key)
            return list(container.query_items(
                query=query,
                parameters=parameters,
                enable_cross_partition_query=True
            ))
        except Exception as e:
            raise StoreUnavailable(container_key, e) from e

    @staticmethod
    def parse_row(row, model: Type[BaseModel], record_set: str):
        """Validate one stored row into its model, raising MalformedRow on failure"""
        row_id = row.get("id") if isinstance(row, dict) else None
        try:
            return model.model_validate(row)
        except ValidationError as e:
            fields = ", ".join(".".join(str(loc) for loc in err["loc"]) for err in e.errors())
            raise MalformedRow(record_set, row_id, f"invalid fields: {fields}") from e

    @staticmethod
    def parse_rows(rows: list, model: Type[BaseModel], record_set: str) -> list:
        """Parse rows one at a time; malformed rows are logged and skipped"""
        parsed = []
        for row in rows:
            try:
                parsed.append(RuleStore.parse_row(row, model, record_set))
            except MalformedRow as e:
                log_warning("Skipping malformed row", {
                    "record_set": e.record_set,
                    "row_id": e.row_id,
                    "reason": e.reason
                })
        return parsed

    @staticmethod
    def fetch_team_members(containers: ContainerLookup, roles: Optional[List[str]] = None) -> List[Profile]:
        roles = roles or Config.CALENDAR_TEAM_ROLES
        rows = RuleStore._read_all(
            containers,
            "profiles",
            query="SELECT * FROM c WHERE ARRAY_CONTAINS(@roles, c.role)",
            parameters=[{"name": "@roles", "value": roles}]
        )
        return RuleStore.parse_rows(rows, Profile, "profiles")

    @staticmethod
    def fetch_rule_set(containers: ContainerLookup, year: int, month: int) -> RuleSet:
        """
        Read every record the month resolver needs.

        The reads are unfiltered; day matching happens in the resolver.
        Raises StoreUnavailable when any read fails.
        """
        try:
            with start_span("fetch_rule_set", attributes={"year": year, "month": month}):
                log_event("Fetching availability rule set", {"year": year, "month": month})

                template_rows = RuleStore._read_all(containers, "session_templates")
                rule_rows = RuleStore._read_all(containers, "availability_rules")
                exception_rows = RuleStore._read_all(containers, "availability_exceptions")
                blocked_rows = RuleStore._read_all(containers, "availability_blocked_dates")

                rule_set = RuleSet(
                    templates=RuleStore.parse_rows(template_rows, SessionTemplate, "session_templates"),
                    weekly_rules=RuleStore.parse_rows(rule_rows, WeeklyRule, "availability_rules"),
                    exceptions=RuleStore.parse_rows(exception_rows, AvailabilityException, "availability_exceptions"),
                    blocked_dates=RuleStore.parse_rows(blocked_rows, BlockedDate, "availability_blocked_dates"),
                    team_members=RuleStore.fetch_team_members(containers)
                )

                read_count = len(template_rows) + len(rule_rows) + len(exception_rows) + len(blocked_rows)
                kept_count = (len(rule_set.templates) + len(rule_set.weekly_rules)
                              + len(rule_set.exceptions) + len(rule_set.blocked_dates))
                log_metric("calendar.skipped_rows", read_count - kept_count, {"year": year, "month": month})

                log_event("Availability rule set fetched", {
                    "templates": len(rule_set.templates),
                    "weekly_rules": len(rule_set.weekly_rules),
                    "exceptions": len(rule_set.exceptions),
                    "blocked_dates": len(rule_set.blocked_dates),
                    "team_members": len(rule_set.team_members)
                })
                return rule_set
        except StoreUnavailable as e:
            log_exception(e, {"operation": "fetch_rule_set", "record_set": e.record_set})
            raise
