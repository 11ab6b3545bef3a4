from datetime import date, time, timedelta
from typing import Dict, Iterator, List
from wellness.configuration.monitor import log_event, log_exception, log_metric, start_span
from wellness.models.mod_availability import (
    AvailabilityException,
    BlockedDate,
    ExceptionKind,
    ResolvedSlot,
    RuleSet,
    SlotSource,
    WeeklyRule
)
from wellness.schemas.sch_calendar import (
    MonthCalendarResponse,
    SessionTemplateResponse,
    SlotResponse,
    TeamMemberResponse
)
from wellness.services.svc_store import ContainerLookup, RuleStore
from wellness.validators.val_availability import AvailabilityValidator

class CalendarService:
    @staticmethod
    def weekday_index(day: date) -> int:
        """Day of week with 0 = Sunday ... 6 = Saturday"""
        return day.isoweekday() % 7

    @staticmethod
    def month_days(year: int, month: int) -> Iterator[date]:
        """Every date of the month, 1st through last, by one-day increments"""
        day = date(year, month, 1)
        while day.month == month:
            yield day
            if day == date.max:
                return
            day += timedelta(days=1)

    @staticmethod
    def _minute_key(value: time):
        return value.hour, value.minute

    @staticmethod
    def resolve_day(
        day: date,
        weekly_for_day: List[WeeklyRule],
        specific_for_day: List[AvailabilityException],
        blocked_for_day: List[BlockedDate]
    ) -> List[ResolvedSlot]:
        """
        Resolve the live slots of one day.

        Args:
            day: the date being resolved
            weekly_for_day: weekly rules whose weekday matches the day
            specific_for_day: exceptions dated on the day
            blocked_for_day: full-day blocks dated on the day
        Returns:
            Surviving weekly slots tagged "rule" followed by additions tagged "exception",
            grouped per instructor.
        """
        instructor_ids = list(dict.fromkeys(
            [rule.instructor_id for rule in weekly_for_day] +
            [exc.instructor_id for exc in specific_for_day]
        ))
        blocked_instructors = {blocked.instructor_id for blocked in blocked_for_day}

        resolved = []
        for instructor_id in instructor_ids:
            # A full-day block wins over rules and exceptions alike
            if instructor_id in blocked_instructors:
                continue

            my_weekly = [rule for rule in weekly_for_day if rule.instructor_id == instructor_id]
            my_exceptions = [exc for exc in specific_for_day if exc.instructor_id == instructor_id]
            to_block = [exc for exc in my_exceptions if exc.kind == ExceptionKind.BLOCK]
            to_add = [exc for exc in my_exceptions if exc.kind == ExceptionKind.ADDITION]

            my_slots = [
                ResolvedSlot(
                    date=day,
                    start=rule.start_time,
                    end=rule.end_time,
                    template_id=rule.session_template_id,
                    instructor_id=instructor_id,
                    location_id=rule.location_id,
                    source=SlotSource.RULE
                )
                for rule in my_weekly
            ]

            # Blocks match on start time at minute precision only
            blocked_starts = {CalendarService._minute_key(exc.start_time) for exc in to_block}
            my_slots = [
                slot for slot in my_slots
                if CalendarService._minute_key(slot.start) not in blocked_starts
            ]

            for exc in to_add:
                my_slots.append(ResolvedSlot(
                    date=day,
                    start=exc.start_time,
                    end=exc.end_time,
                    template_id=exc.session_template_id,
                    instructor_id=instructor_id,
                    location_id=exc.location_id,
                    source=SlotSource.EXCEPTION,
                    exception_id=exc.id
                ))

            resolved.extend(my_slots)
        return resolved

    @staticmethod
    def resolve_month(rule_set: RuleSet, year: int, month: int) -> List[ResolvedSlot]:
        """Resolve every day of the month in ascending date order"""
        rules_by_weekday: Dict[int, List[WeeklyRule]] = {}
        for rule in rule_set.weekly_rules:
            rules_by_weekday.setdefault(rule.weekday, []).append(rule)

        exceptions_by_date: Dict[date, List[AvailabilityException]] = {}
        for exc in rule_set.exceptions:
            exceptions_by_date.setdefault(exc.date, []).append(exc)

        blocked_by_date: Dict[date, List[BlockedDate]] = {}
        for blocked in rule_set.blocked_dates:
            blocked_by_date.setdefault(blocked.date, []).append(blocked)

        slots = []
        for day in CalendarService.month_days(year, month):
            slots.extend(CalendarService.resolve_day(
                day,
                rules_by_weekday.get(CalendarService.weekday_index(day), []),
                exceptions_by_date.get(day, []),
                blocked_by_date.get(day, [])
            ))
        return slots

    @staticmethod
    def emit_slots(slots: List[ResolvedSlot]) -> List[SlotResponse]:
        """Flatten resolved slots into the wire format"""
        return [
            SlotResponse(
                date=slot.date.isoformat(),
                start=slot.start.strftime("%H:%M:%S"),
                end=slot.end.strftime("%H:%M:%S"),
                template_id=slot.template_id,
                instructor_id=slot.instructor_id,
                location_id=slot.location_id,
                source=slot.source,
                exception_id=slot.exception_id
            )
            for slot in slots
        ]

    @staticmethod
    def assemble(slots: List[SlotResponse], rule_set: RuleSet) -> MonthCalendarResponse:
        team_members = [
            TeamMemberResponse(id=member.id, name=member.display_name, avatar_url=member.avatar_url)
            for member in rule_set.team_members
        ]
        session_templates = [
            SessionTemplateResponse(
                id=template.id,
                name=template.name,
                duration=template.duration,
                price=template.price,
                currency=template.currency,
                category_id=template.category_id
            )
            for template in rule_set.templates
        ]
        return MonthCalendarResponse(
            slots=slots,
            team_members=team_members,
            session_templates=session_templates
        )

    @staticmethod
    def get_month_calendar(containers: ContainerLookup, year: int, month: int) -> MonthCalendarResponse:
        try:
            with start_span("get_month_calendar", attributes={"year": year, "month": month}):
                AvailabilityValidator.validate_month(year, month)
                log_event("Month calendar requested", {"year": year, "month": month})

                rule_set = RuleStore.fetch_rule_set(containers, year, month)
                slots = CalendarService.emit_slots(
                    CalendarService.resolve_month(rule_set, year, month)
                )

                log_metric("calendar.slots", len(slots), {"year": year, "month": month})
                return CalendarService.assemble(slots, rule_set)
        except Exception as e:
            log_exception(e, {"operation": "get_month_calendar", "year": year, "month": month})
            raise
