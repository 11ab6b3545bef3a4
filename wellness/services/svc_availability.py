from azure.cosmos.exceptions import CosmosResourceNotFoundError
from wellness.models.mod_availability import WeeklyRule, AvailabilityException, BlockedDate
from wellness.models.mod_team import Profile
from wellness.schemas.sch_availability import (
    WeeklyScheduleUpdate,
    ExceptionsCreate,
    BlockedDatesCreate,
    InstructorAvailabilityResponse
)
from wellness.services.svc_store import ContainerLookup, MalformedRow, RuleStore
from wellness.validators.val_availability import AvailabilityValidator
import uuid
from datetime import datetime, timezone, time
from typing import List, Optional
from wellness.configuration.monitor import log_event, log_exception, log_warning, start_span

class AvailabilityService:
    @staticmethod
    def _serialize_time(value: time) -> str:
        """Convert time objects to string format"""
        return value.strftime("%H:%M:%S")

    @staticmethod
    def _query(containers: ContainerLookup, container_key: str, query: str, parameters: list) -> list:
        return list(containers(container_key).query_items(
            query=query,
            parameters=parameters,
            enable_cross_partition_query=True
        ))

    @staticmethod
    def _instructor_query(instructor_id: str, session_template_id: Optional[str] = None):
        query = "SELECT * FROM c WHERE c.instructor_id = @instructor_id"
        parameters = [{"name": "@instructor_id", "value": instructor_id}]
        if session_template_id:
            query += " AND c.session_template_id = @session_template_id"
            parameters.append({"name": "@session_template_id", "value": session_template_id})
        return query, parameters

    @staticmethod
    def get_team_members(containers: ContainerLookup) -> List[Profile]:
        try:
            with start_span("get_team_members"):
                members = RuleStore.fetch_team_members(containers)
                log_event("Team members retrieved", {"count": len(members)})
                return members
        except Exception as e:
            log_exception(e, {"operation": "get_team_members"})
            raise

    @staticmethod
    def get_instructor_availability(
        containers: ContainerLookup,
        instructor_id: str,
        session_template_id: Optional[str] = None
    ) -> InstructorAvailabilityResponse:
        try:
            with start_span("get_instructor_availability", attributes={"instructor_id": instructor_id}):
                log_event("Retrieving instructor availability", {
                    "instructor_id": instructor_id,
                    "session_template_id": session_template_id
                })

                query, parameters = AvailabilityService._instructor_query(instructor_id, session_template_id)
                rules = AvailabilityService._query(containers, "availability_rules", query, parameters)
                exceptions = AvailabilityService._query(containers, "availability_exceptions", query, parameters)

                # Blocked dates are never service specific
                query, parameters = AvailabilityService._instructor_query(instructor_id)
                blocked = AvailabilityService._query(containers, "availability_blocked_dates", query, parameters)

                result = InstructorAvailabilityResponse(
                    schedule=RuleStore.parse_rows(rules, WeeklyRule, "availability_rules"),
                    specific_dates=RuleStore.parse_rows(exceptions, AvailabilityException, "availability_exceptions"),
                    blocked_dates=RuleStore.parse_rows(blocked, BlockedDate, "availability_blocked_dates")
                )

                log_event("Instructor availability retrieved", {
                    "instructor_id": instructor_id,
                    "rules": len(result.schedule),
                    "exceptions": len(result.specific_dates),
                    "blocked_dates": len(result.blocked_dates)
                })
                return result
        except Exception as e:
            log_exception(e, {"operation": "get_instructor_availability", "instructor_id": instructor_id})
            raise

    @staticmethod
    def _execute_batch(container, instructor_id: str, operations: list):
        """Apply every write for one instructor as a single transactional batch"""
        AvailabilityValidator.validate_batch_size(len(operations))
        if operations:
            container.execute_item_batch(batch_operations=operations, partition_key=instructor_id)

    @staticmethod
    def _find_owner(containers: ContainerLookup, container_key: str, item_id: str, model) -> Optional[str]:
        """
        Look up the instructor owning a stored row.
        Malformed rows still resolve to their instructor so they can be removed.
        """
        items = AvailabilityService._query(
            containers,
            container_key,
            "SELECT * FROM c WHERE c.id = @id",
            [{"name": "@id", "value": item_id}]
        )
        if not items:
            return None
        try:
            return RuleStore.parse_row(items[0], model, container_key).instructor_id
        except MalformedRow as e:
            log_warning("Malformed row looked up for deletion", {
                "record_set": e.record_set,
                "row_id": e.row_id,
                "reason": e.reason
            })
            instructor_id = items[0].get("instructor_id") if isinstance(items[0], dict) else None
            return instructor_id if isinstance(instructor_id, str) and instructor_id else None

    @staticmethod
    def replace_weekly_schedule(
        containers: ContainerLookup,
        instructor_id: str,
        schedule: WeeklyScheduleUpdate
    ) -> List[WeeklyRule]:
        """
        Replace an instructor's weekly rules.
        When a session template is given only the rules for that template are replaced.
        Deletes and inserts succeed or fail together.
        """
        try:
            with start_span("replace_weekly_schedule", attributes={"instructor_id": instructor_id}):
                log_event("Replace weekly schedule started", {
                    "instructor_id": instructor_id,
                    "session_template_id": schedule.session_template_id,
                    "rules": len(schedule.rules)
                })

                # Validate business rules
                AvailabilityValidator.validate_weekly_rules(schedule.rules)

                query, parameters = AvailabilityService._instructor_query(instructor_id, schedule.session_template_id)
                operations = [
                    ("delete", (existing["id"],))
                    for existing in AvailabilityService._query(containers, "availability_rules", query, parameters)
                ]

                current_time = datetime.now(timezone.utc)
                created = []
                for rule in schedule.rules:
                    rule_dict = {
                        "id": str(uuid.uuid4()),
                        "instructor_id": instructor_id,
                        "session_template_id": schedule.session_template_id or rule.session_template_id,
                        "weekday": rule.weekday,
                        "start_time": AvailabilityService._serialize_time(rule.start_time),
                        "end_time": AvailabilityService._serialize_time(rule.end_time),
                        "location_id": rule.location_id,
                        "created_at": current_time.isoformat()
                    }
                    operations.append(("create", (rule_dict,)))
                    created.append(WeeklyRule(**rule_dict))

                AvailabilityService._execute_batch(containers("availability_rules"), instructor_id, operations)

                log_event("Weekly schedule replaced", {
                    "instructor_id": instructor_id,
                    "deleted": len(operations) - len(created),
                    "count": len(created)
                })
                return created
        except Exception as e:
            log_exception(e, {"operation": "replace_weekly_schedule", "instructor_id": instructor_id})
            raise

    @staticmethod
    def add_exceptions(
        containers: ContainerLookup,
        instructor_id: str,
        payload: ExceptionsCreate
    ) -> List[AvailabilityException]:
        """Record one-off additions or blocks of weekly slots"""
        try:
            with start_span("add_exceptions", attributes={"instructor_id": instructor_id}):
                log_event("Add exceptions started", {
                    "instructor_id": instructor_id,
                    "count": len(payload.exceptions)
                })

                current_time = datetime.now(timezone.utc)
                operations = []
                created = []
                for exception in payload.exceptions:
                    exception_dict = {
                        "id": str(uuid.uuid4()),
                        "instructor_id": instructor_id,
                        "session_template_id": payload.session_template_id or exception.session_template_id,
                        "date": exception.date.isoformat(),
                        "start_time": AvailabilityService._serialize_time(exception.start_time),
                        "end_time": AvailabilityService._serialize_time(exception.end_time),
                        "location_id": exception.location_id,
                        "is_available": exception.is_available,
                        "created_at": current_time.isoformat()
                    }
                    operations.append(("create", (exception_dict,)))
                    created.append(AvailabilityException(**exception_dict))

                AvailabilityService._execute_batch(containers("availability_exceptions"), instructor_id, operations)

                log_event("Exceptions added", {
                    "instructor_id": instructor_id,
                    "count": len(created)
                })
                return created
        except Exception as e:
            log_exception(e, {"operation": "add_exceptions", "instructor_id": instructor_id})
            raise

    @staticmethod
    def get_exception_owner(containers: ContainerLookup, exception_id: str) -> Optional[str]:
        try:
            with start_span("get_exception_owner", attributes={"exception_id": exception_id}):
                owner = AvailabilityService._find_owner(
                    containers, "availability_exceptions", exception_id, AvailabilityException
                )
                if owner is None:
                    log_event("Exception not found", {"exception_id": exception_id})
                return owner
        except Exception as e:
            log_exception(e, {"operation": "get_exception_owner", "exception_id": exception_id})
            raise

    @staticmethod
    def delete_exception(containers: ContainerLookup, exception_id: str, instructor_id: str) -> bool:
        try:
            with start_span("delete_exception", attributes={"exception_id": exception_id}):
                log_event("Delete exception started", {"exception_id": exception_id})

                containers("availability_exceptions").delete_item(item=exception_id, partition_key=instructor_id)

                log_event("Exception deleted successfully", {"exception_id": exception_id})
                return True
        except CosmosResourceNotFoundError:
            log_event("Exception not found for deletion", {"exception_id": exception_id})
            return False
        except Exception as e:
            log_exception(e, {"operation": "delete_exception", "exception_id": exception_id})
            raise

    @staticmethod
    def block_dates(
        containers: ContainerLookup,
        instructor_id: str,
        payload: BlockedDatesCreate
    ) -> List[BlockedDate]:
        try:
            with start_span("block_dates", attributes={"instructor_id": instructor_id}):
                log_event("Block dates started", {
                    "instructor_id": instructor_id,
                    "count": len(payload.dates)
                })

                current_time = datetime.now(timezone.utc)
                operations = []
                created = []
                for blocked in payload.dates:
                    blocked_dict = {
                        "id": str(uuid.uuid4()),
                        "instructor_id": instructor_id,
                        "date": blocked.date.isoformat(),
                        "reason": blocked.reason,
                        "created_at": current_time.isoformat()
                    }
                    operations.append(("create", (blocked_dict,)))
                    created.append(BlockedDate(**blocked_dict))

                AvailabilityService._execute_batch(containers("availability_blocked_dates"), instructor_id, operations)

                log_event("Dates blocked", {
                    "instructor_id": instructor_id,
                    "count": len(created)
                })
                return created
        except Exception as e:
            log_exception(e, {"operation": "block_dates", "instructor_id": instructor_id})
            raise

    @staticmethod
    def get_blocked_date_owner(containers: ContainerLookup, blocked_date_id: str) -> Optional[str]:
        try:
            with start_span("get_blocked_date_owner", attributes={"blocked_date_id": blocked_date_id}):
                owner = AvailabilityService._find_owner(
                    containers, "availability_blocked_dates", blocked_date_id, BlockedDate
                )
                if owner is None:
                    log_event("Blocked date not found", {"blocked_date_id": blocked_date_id})
                return owner
        except Exception as e:
            log_exception(e, {"operation": "get_blocked_date_owner", "blocked_date_id": blocked_date_id})
            raise

    @staticmethod
    def unblock_date(containers: ContainerLookup, blocked_date_id: str, instructor_id: str) -> bool:
        try:
            with start_span("unblock_date", attributes={"blocked_date_id": blocked_date_id}):
                log_event("Unblock date started", {"blocked_date_id": blocked_date_id})

                containers("availability_blocked_dates").delete_item(item=blocked_date_id, partition_key=instructor_id)

                log_event("Date unblocked successfully", {"blocked_date_id": blocked_date_id})
                return True
        except CosmosResourceNotFoundError:
            log_event("Blocked date not found for deletion", {"blocked_date_id": blocked_date_id})
            return False
        except Exception as e:
            log_exception(e, {"operation": "unblock_date", "blocked_date_id": blocked_date_id})
            raise
