from datetime import MINYEAR, MAXYEAR
from fastapi import HTTPException
from wellness.models.mod_auth import AuthUser, UserRole
from wellness.schemas.sch_availability import WeeklyRuleCreate
from typing import List

# Cosmos DB transactional batch limit
MAX_BATCH_OPERATIONS = 100

class AvailabilityValidationError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class AvailabilityValidator:
    @staticmethod
    def validate_month(year: int, month: int):
        """Validate a calendar month request"""
        if not (1 <= month <= 12):
            raise AvailabilityValidationError(
                "month must be between 1 and 12"
            )
        if not (MINYEAR <= year <= MAXYEAR):
            raise AvailabilityValidationError(
                f"year must be between {MINYEAR} and {MAXYEAR}"
            )

    @staticmethod
    def validate_weekly_rules(rules: List[WeeklyRuleCreate]):
        """Validate that weekly rules don't overlap for the same weekday and service"""
        by_day = {}
        for rule in rules:
            by_day.setdefault((rule.weekday, rule.session_template_id), []).append(rule)

        for day_rules in by_day.values():
            sorted_rules = sorted(day_rules, key=lambda x: x.start_time)
            for i in range(len(sorted_rules) - 1):
                if sorted_rules[i].end_time > sorted_rules[i + 1].start_time:
                    raise AvailabilityValidationError(
                        "Weekly rules cannot overlap"
                    )

    @staticmethod
    def validate_can_edit(current_user: AuthUser, instructor_id: str):
        """Admins edit anyone, team members only their own availability"""
        if current_user.role == UserRole.ADMIN:
            return
        if current_user.role in [UserRole.INSTRUCTOR, UserRole.TEAM_MEMBER] and current_user.id == instructor_id:
            return
        raise HTTPException(
            status_code=403,
            detail="You don't have permission to edit this availability"
        )

    @staticmethod
    def validate_batch_size(operations: int):
        """A transactional batch holds at most MAX_BATCH_OPERATIONS writes"""
        if operations > MAX_BATCH_OPERATIONS:
            raise AvailabilityValidationError(
                f"At most {MAX_BATCH_OPERATIONS} changes can be saved at once"
            )
