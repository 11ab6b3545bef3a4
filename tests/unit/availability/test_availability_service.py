import pytest
from unittest.mock import MagicMock, patch
from datetime import date, time

from azure.cosmos.exceptions import CosmosBatchOperationError, CosmosResourceNotFoundError

from wellness.services.svc_availability import AvailabilityService
from wellness.schemas.sch_availability import (
    WeeklyRuleCreate,
    WeeklyScheduleUpdate,
    ExceptionCreate,
    ExceptionsCreate,
    BlockedDateCreate,
    BlockedDatesCreate
)
from wellness.models.mod_availability import AvailabilityException, BlockedDate, ExceptionKind, WeeklyRule
from wellness.validators.val_availability import AvailabilityValidationError, MAX_BATCH_OPERATIONS

class TestAvailabilityService:
    @pytest.fixture
    def containers(self):
        mocks = {
            "availability_rules": MagicMock(),
            "availability_exceptions": MagicMock(),
            "availability_blocked_dates": MagicMock(),
            "profiles": MagicMock()
        }
        for container in mocks.values():
            container.query_items.return_value = []
        return mocks

    @pytest.fixture
    def lookup(self, containers):
        return lambda key: containers[key]

    @pytest.fixture
    def weekly_schedule(self):
        return WeeklyScheduleUpdate(rules=[
            WeeklyRuleCreate(weekday=1, start_time=time(9, 0), end_time=time(10, 0), location_id="loc1"),
            WeeklyRuleCreate(weekday=3, start_time=time(18, 0), end_time=time(19, 30))
        ])

    def test_serialize_time(self):
        assert AvailabilityService._serialize_time(time(9, 5)) == "09:05:00"

    def test_get_instructor_availability(self, containers, lookup):
        containers["availability_rules"].query_items.return_value = [
            {"id": "r1", "instructor_id": "X", "weekday": 1, "start_time": "09:00:00", "end_time": "10:00:00"}
        ]
        containers["availability_exceptions"].query_items.return_value = [
            {"id": "e1", "instructor_id": "X", "date": "2025-02-10", "start_time": "09:00:00",
             "end_time": "10:00:00", "is_available": False}
        ]
        containers["availability_blocked_dates"].query_items.return_value = [
            {"id": "b1", "instructor_id": "X", "date": "2025-02-17"}
        ]

        result = AvailabilityService.get_instructor_availability(lookup, "X")

        assert result.schedule[0].weekday == 1
        assert result.specific_dates[0].kind == ExceptionKind.BLOCK
        assert result.blocked_dates[0].date == date(2025, 2, 17)

        kwargs = containers["availability_rules"].query_items.call_args[1]
        assert kwargs["parameters"] == [{"name": "@instructor_id", "value": "X"}]

    def test_get_instructor_availability_for_service(self, containers, lookup):
        AvailabilityService.get_instructor_availability(lookup, "X", "T1")

        rules_query = containers["availability_rules"].query_items.call_args[1]
        assert "c.session_template_id = @session_template_id" in rules_query["query"]
        exceptions_query = containers["availability_exceptions"].query_items.call_args[1]
        assert {"name": "@session_template_id", "value": "T1"} in exceptions_query["parameters"]
        blocked_query = containers["availability_blocked_dates"].query_items.call_args[1]
        assert "session_template_id" not in blocked_query["query"]

    @patch('uuid.uuid4')
    def test_replace_weekly_schedule(self, mock_uuid, containers, lookup, weekly_schedule):
        mock_uuid.side_effect = ["new-1", "new-2"]
        containers["availability_rules"].query_items.return_value = [
            {"id": "old-1", "instructor_id": "X", "weekday": 2, "start_time": "08:00:00", "end_time": "09:00:00"}
        ]

        result = AvailabilityService.replace_weekly_schedule(lookup, "X", weekly_schedule)

        containers["availability_rules"].execute_item_batch.assert_called_once()
        kwargs = containers["availability_rules"].execute_item_batch.call_args[1]
        assert kwargs["partition_key"] == "X"
        operations = kwargs["batch_operations"]
        assert operations[0] == ("delete", ("old-1",))
        assert [operation[0] for operation in operations[1:]] == ["create", "create"]

        created_item = operations[1][1][0]
        assert created_item["id"] == "new-1"
        assert created_item["instructor_id"] == "X"
        assert created_item["weekday"] == 1
        assert created_item["start_time"] == "09:00:00"
        assert created_item["end_time"] == "10:00:00"
        assert created_item["location_id"] == "loc1"

        containers["availability_rules"].delete_item.assert_not_called()
        containers["availability_rules"].create_item.assert_not_called()
        assert [rule.id for rule in result] == ["new-1", "new-2"]
        assert isinstance(result[0], WeeklyRule)

    def test_replace_weekly_schedule_for_service(self, containers, lookup, weekly_schedule):
        weekly_schedule.session_template_id = "T1"

        AvailabilityService.replace_weekly_schedule(lookup, "X", weekly_schedule)

        query = containers["availability_rules"].query_items.call_args[1]["query"]
        assert "c.session_template_id = @session_template_id" in query
        operations = containers["availability_rules"].execute_item_batch.call_args[1]["batch_operations"]
        assert operations[-1][1][0]["session_template_id"] == "T1"

    def test_replace_weekly_schedule_insert_fails(self, containers, lookup, weekly_schedule):
        containers["availability_rules"].query_items.return_value = [
            {"id": "old-1", "instructor_id": "X", "weekday": 2, "start_time": "08:00:00", "end_time": "09:00:00"}
        ]
        containers["availability_rules"].execute_item_batch.side_effect = CosmosBatchOperationError(
            error_index=1,
            headers={},
            status_code=409,
            message="Conflict",
            operation_responses=[]
        )

        with pytest.raises(CosmosBatchOperationError):
            AvailabilityService.replace_weekly_schedule(lookup, "X", weekly_schedule)

        containers["availability_rules"].delete_item.assert_not_called()
        containers["availability_rules"].create_item.assert_not_called()

    def test_replace_weekly_schedule_overlap(self, containers, lookup):
        schedule = WeeklyScheduleUpdate(rules=[
            WeeklyRuleCreate(weekday=1, start_time=time(9, 0), end_time=time(10, 30)),
            WeeklyRuleCreate(weekday=1, start_time=time(10, 0), end_time=time(11, 0))
        ])

        with pytest.raises(AvailabilityValidationError):
            AvailabilityService.replace_weekly_schedule(lookup, "X", schedule)

        containers["availability_rules"].execute_item_batch.assert_not_called()

    def test_replace_weekly_schedule_too_many_changes(self, containers, lookup, weekly_schedule):
        containers["availability_rules"].query_items.return_value = [
            {"id": f"old-{i}"} for i in range(MAX_BATCH_OPERATIONS)
        ]

        with pytest.raises(AvailabilityValidationError):
            AvailabilityService.replace_weekly_schedule(lookup, "X", weekly_schedule)

        containers["availability_rules"].execute_item_batch.assert_not_called()

    def test_replace_weekly_schedule_same_time_different_services(self, containers, lookup):
        schedule = WeeklyScheduleUpdate(rules=[
            WeeklyRuleCreate(weekday=1, start_time=time(9, 0), end_time=time(10, 0), session_template_id="T1"),
            WeeklyRuleCreate(weekday=1, start_time=time(9, 0), end_time=time(10, 0), session_template_id="T2")
        ])

        result = AvailabilityService.replace_weekly_schedule(lookup, "X", schedule)

        assert len(result) == 2

    def test_replace_weekly_schedule_clear(self, containers, lookup):
        AvailabilityService.replace_weekly_schedule(lookup, "X", WeeklyScheduleUpdate(rules=[]))

        containers["availability_rules"].execute_item_batch.assert_not_called()

    @patch('uuid.uuid4')
    def test_add_exceptions(self, mock_uuid, containers, lookup):
        mock_uuid.side_effect = ["exc-1", "exc-2"]
        payload = ExceptionsCreate(exceptions=[
            ExceptionCreate(date=date(2025, 2, 10), start_time=time(9, 0), end_time=time(10, 0), is_available=False),
            ExceptionCreate(date=date(2025, 2, 15), start_time=time(14, 0), end_time=time(15, 0),
                            session_template_id="T2")
        ])

        result = AvailabilityService.add_exceptions(lookup, "Y", payload)

        kwargs = containers["availability_exceptions"].execute_item_batch.call_args[1]
        assert kwargs["partition_key"] == "Y"
        bodies = [operation[1][0] for operation in kwargs["batch_operations"]]
        assert bodies[0]["id"] == "exc-1"
        assert bodies[0]["date"] == "2025-02-10"
        assert bodies[0]["is_available"] is False
        assert bodies[1]["session_template_id"] == "T2"
        assert bodies[1]["is_available"] is True

        assert isinstance(result[0], AvailabilityException)
        assert result[0].kind == ExceptionKind.BLOCK
        assert result[1].kind == ExceptionKind.ADDITION

    def test_add_exceptions_batch_fails(self, containers, lookup):
        containers["availability_exceptions"].execute_item_batch.side_effect = CosmosBatchOperationError(
            error_index=1,
            headers={},
            status_code=409,
            message="Conflict",
            operation_responses=[]
        )
        payload = ExceptionsCreate(exceptions=[
            ExceptionCreate(date=date(2025, 2, 10), start_time=time(9, 0), end_time=time(10, 0)),
            ExceptionCreate(date=date(2025, 2, 11), start_time=time(9, 0), end_time=time(10, 0))
        ])

        with pytest.raises(CosmosBatchOperationError):
            AvailabilityService.add_exceptions(lookup, "Y", payload)

        containers["availability_exceptions"].create_item.assert_not_called()

    def test_get_exception_owner(self, containers, lookup):
        containers["availability_exceptions"].query_items.return_value = [
            {"id": "exc-1", "instructor_id": "Y", "date": "2025-02-15", "start_time": "14:00:00",
             "end_time": "15:00:00", "is_available": True}
        ]

        assert AvailabilityService.get_exception_owner(lookup, "exc-1") == "Y"
        kwargs = containers["availability_exceptions"].query_items.call_args[1]
        assert kwargs["parameters"] == [{"name": "@id", "value": "exc-1"}]

    @patch('wellness.services.svc_availability.log_warning')
    def test_get_exception_owner_malformed_row(self, mock_warning, containers, lookup):
        containers["availability_exceptions"].query_items.return_value = [
            {"id": "e9", "instructor_id": "X", "date": "2025-02-10"}
        ]

        assert AvailabilityService.get_exception_owner(lookup, "e9") == "X"
        assert mock_warning.call_args[0][1]["row_id"] == "e9"

    def test_get_exception_owner_malformed_row_without_owner(self, containers, lookup):
        containers["availability_exceptions"].query_items.return_value = [{"id": "e9", "date": "2025-02-10"}]

        assert AvailabilityService.get_exception_owner(lookup, "e9") is None

    def test_get_exception_owner_not_found(self, lookup):
        assert AvailabilityService.get_exception_owner(lookup, "missing") is None

    def test_delete_exception_success(self, containers, lookup):
        assert AvailabilityService.delete_exception(lookup, "exc-1", "Y") is True
        containers["availability_exceptions"].delete_item.assert_called_once_with(item="exc-1", partition_key="Y")

    def test_delete_exception_not_found(self, containers, lookup):
        containers["availability_exceptions"].delete_item.side_effect = CosmosResourceNotFoundError(
            status_code=404, message="Not found"
        )

        assert AvailabilityService.delete_exception(lookup, "exc-1", "Y") is False

    def test_delete_exception_store_error(self, containers, lookup):
        containers["availability_exceptions"].delete_item.side_effect = Exception("connection reset")

        with pytest.raises(Exception, match="connection reset"):
            AvailabilityService.delete_exception(lookup, "exc-1", "Y")

    @patch('uuid.uuid4')
    def test_block_dates(self, mock_uuid, containers, lookup):
        mock_uuid.return_value = "blocked-1"
        payload = BlockedDatesCreate(dates=[BlockedDateCreate(date=date(2025, 2, 17), reason="Retreat")])

        result = AvailabilityService.block_dates(lookup, "X", payload)

        kwargs = containers["availability_blocked_dates"].execute_item_batch.call_args[1]
        assert kwargs["partition_key"] == "X"
        body = kwargs["batch_operations"][0][1][0]
        assert body["id"] == "blocked-1"
        assert body["date"] == "2025-02-17"
        assert body["reason"] == "Retreat"
        assert isinstance(result[0], BlockedDate)

    def test_get_blocked_date_owner(self, containers, lookup):
        containers["availability_blocked_dates"].query_items.return_value = [
            {"id": "blocked-1", "instructor_id": "X", "date": "2025-02-17"}
        ]

        assert AvailabilityService.get_blocked_date_owner(lookup, "blocked-1") == "X"

    def test_unblock_date(self, containers, lookup):
        assert AvailabilityService.unblock_date(lookup, "blocked-1", "X") is True
        containers["availability_blocked_dates"].delete_item.assert_called_once_with(
            item="blocked-1", partition_key="X"
        )

    def test_get_team_members(self, containers, lookup):
        containers["profiles"].query_items.return_value = [
            {"id": "X", "full_name": "Alex Yoga", "role": "instructor"},
            {"full_name": "No id"}
        ]

        members = AvailabilityService.get_team_members(lookup)

        assert [member.id for member in members] == ["X"]
