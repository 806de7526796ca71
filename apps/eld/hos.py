"""
Hours-of-Service compliance calculator.

Pure functions over a driver's duty-status segments. Nothing here touches the
database: callers load segments, pass them in with a reference time and a
rule set, and get back a freshly computed HOSState.

All arithmetic is done in whole seconds so limit boundaries are exact:
reaching a limit is compliant, any time beyond it is not.
"""
import bisect
from datetime import datetime, timedelta, timezone as dt_timezone

from .statuses import DRIVING, ON_DUTY, OFF_DUTY, SLEEPER

WORK_STATUSES = (DRIVING, ON_DUTY)
REST_STATUSES = (OFF_DUTY, SLEEPER)

CYCLES = {
    'US_60_7': (60, 7),
    'US_70_8': (70, 8),
}

# Violation codes
DRIVING_LIMIT = 'DRIVING_LIMIT'
ON_DUTY_LIMIT = 'ON_DUTY_LIMIT'
DUTY_WINDOW = 'DUTY_WINDOW'
BREAK_REQUIRED = 'BREAK_REQUIRED'
CYCLE_LIMIT = 'CYCLE_LIMIT'

_EARLIEST = datetime.min.replace(tzinfo=dt_timezone.utc)


def _seconds(delta):
    return int(delta.total_seconds())


def _hours(seconds):
    return round(seconds / 3600.0, 2)


class HOSRuleSet:
    """
    Federal property-carrying driver limits. The multi-day cycle is configuration,
    never inferred.
    """

    def __init__(self, cycle='US_70_8', split_sleeper=False):
        if cycle not in CYCLES:
            raise ValueError(f"Unknown HOS cycle '{cycle}'")
        self.cycle = cycle
        self.split_sleeper = split_sleeper

        self.max_driving = 11 * 3600
        self.max_on_duty = 14 * 3600
        self.duty_window = 14 * 3600
        self.reset_rest = 10 * 3600
        self.break_after = 8 * 3600
        self.break_length = 30 * 60
        self.restart_rest = 34 * 3600

        cycle_hours, cycle_days = CYCLES[cycle]
        self.cycle_limit = cycle_hours * 3600
        self.cycle_days = cycle_days

    @classmethod
    def for_driver(cls, driver):
        return cls(
            cycle=driver.get_hos_cycle(),
            split_sleeper=driver.company.split_sleeper_enabled,
        )

    @property
    def cycle_label(self):
        cycle_hours, cycle_days = CYCLES[self.cycle]
        return f"{cycle_hours}-hour/{cycle_days}-day"

    @property
    def lookback(self):
        """How far back segments must be loaded to evaluate these rules."""
        return timedelta(days=self.cycle_days + 2)


class Segment:
    """
    One stored duty-status interval as the calculator sees it.

    ``ingested_at`` and ``pk`` order competing versions: the most recently
    ingested record wins wherever segments overlap.
    """

    def __init__(self, log_type, start_time, end_time=None, external_id=None,
                 device_id=None, ingested_at=None, pk=None):
        self.log_type = log_type
        self.start_time = start_time
        self.end_time = end_time
        self.external_id = external_id
        self.device_id = device_id
        self.ingested_at = ingested_at
        self.pk = pk

    @classmethod
    def from_log(cls, log):
        return cls(
            log.log_type,
            log.start_time,
            log.end_time,
            external_id=log.external_id,
            device_id=log.eld_device_id,
            ingested_at=log.updated_at,
            pk=log.pk,
        )

    @property
    def identity(self):
        if self.external_id is not None:
            return ('external', self.device_id, self.external_id)
        if self.pk is not None:
            return ('pk', self.pk)
        return None

    def __repr__(self):
        return f"Segment({self.log_type}, {self.start_time}, {self.end_time})"


class Interval:
    """Resolved, non-overlapping slice of the timeline."""

    def __init__(self, start, end, status):
        self.start = start
        self.end = end
        self.status = status

    @property
    def seconds(self):
        return _seconds(self.end - self.start)

    def seconds_within(self, lower, upper):
        start = max(self.start, lower)
        end = min(self.end, upper)
        return _seconds(end - start) if end > start else 0

    def __repr__(self):
        return f"Interval({self.status}, {self.start}, {self.end})"


class Violation:

    def __init__(self, code, message, occurred_at=None):
        self.code = code
        self.message = message
        self.occurred_at = occurred_at

    def to_dict(self):
        return {
            'code': self.code,
            'message': self.message,
            'occurred_at': self.occurred_at.isoformat() if self.occurred_at else None,
        }


class HOSState:
    """
    Computed (never persisted) compliance view of one driver at ``as_of``.
    """

    def __init__(self, driver_id, as_of, rules):
        self.driver_id = driver_id
        self.as_of = as_of
        self.rules = rules

        self.window_start = None
        self.driving_seconds = 0
        self.on_duty_seconds = 0
        self.driving_since_break_seconds = 0
        self.cycle_used_seconds = 0
        self.current_status = None
        self.violations = []
        self.notes = []

    @property
    def window_end(self):
        if self.window_start is None:
            return None
        return self.window_start + timedelta(seconds=self.rules.duty_window)

    @property
    def remaining_driving_seconds(self):
        return max(0, self.rules.max_driving - self.driving_seconds)

    @property
    def remaining_on_duty_seconds(self):
        return max(0, self.rules.max_on_duty - self.on_duty_seconds)

    @property
    def cycle_remaining_seconds(self):
        return max(0, self.rules.cycle_limit - self.cycle_used_seconds)

    @property
    def needs_break(self):
        return self.driving_since_break_seconds >= self.rules.break_after

    @property
    def can_drive(self):
        return (
            self.remaining_driving_seconds > 0
            and self.remaining_on_duty_seconds > 0
            and self.cycle_remaining_seconds > 0
            and not self.needs_break
            and not self.violations
        )

    @property
    def driving_hours(self):
        return _hours(self.driving_seconds)

    @property
    def on_duty_hours(self):
        return _hours(self.on_duty_seconds)

    @property
    def remaining_driving_hours(self):
        return _hours(self.remaining_driving_seconds)

    @property
    def remaining_on_duty_hours(self):
        return _hours(self.remaining_on_duty_seconds)

    @property
    def violation_codes(self):
        return [violation.code for violation in self.violations]

    def add_violation(self, code, message, occurred_at=None):
        if code not in self.violation_codes:
            self.violations.append(Violation(code, message, occurred_at))

    def to_dict(self):
        return {
            'driver_id': self.driver_id,
            'as_of': self.as_of.isoformat(),
            'cycle': self.rules.cycle,
            'current_status': self.current_status,
            'window_start': self.window_start.isoformat() if self.window_start else None,
            'window_end': self.window_end.isoformat() if self.window_end else None,
            'driving_hours': self.driving_hours,
            'on_duty_hours': self.on_duty_hours,
            'remaining_driving_hours': self.remaining_driving_hours,
            'remaining_on_duty_hours': self.remaining_on_duty_hours,
            'driving_since_break_hours': _hours(self.driving_since_break_seconds),
            'cycle_hours_used': _hours(self.cycle_used_seconds),
            'cycle_hours_remaining': _hours(self.cycle_remaining_seconds),
            'needs_break': self.needs_break,
            'can_drive': self.can_drive,
            'violations': [violation.to_dict() for violation in self.violations],
            'notes': list(self.notes),
        }


def build_timeline(segments, as_of):
    """
    Reduce raw (possibly duplicated, overlapping, open-ended) segments to a
    sorted list of non-overlapping intervals ending no later than ``as_of``.

    - repeated versions of one external record keep only the latest ingest
    - an open segment ends where the next segment starts, else at ``as_of``
    - where segments overlap, the most recently ingested one owns the time
    - uncovered time stays a gap
    """
    latest = {}
    for order, segment in enumerate(segments):
        rank = (segment.ingested_at or _EARLIEST, segment.pk or 0, order)
        key = segment.identity or ('order', order)
        if key not in latest or rank > latest[key][0]:
            latest[key] = (rank, segment)

    starts = sorted({segment.start_time for _, segment in latest.values()})

    resolved = []
    for rank, segment in latest.values():
        start = segment.start_time
        if start >= as_of:
            continue
        end = segment.end_time
        if end is None:
            index = bisect.bisect_right(starts, start)
            end = starts[index] if index < len(starts) else as_of
        end = min(end, as_of)
        if end <= start:
            continue
        resolved.append((rank, start, end, segment.log_type))

    bounds = sorted({moment for _, start, end, _ in resolved for moment in (start, end)})

    timeline = []
    for lower, upper in zip(bounds, bounds[1:]):
        covering = [item for item in resolved if item[1] <= lower and item[2] >= upper]
        if not covering:
            continue
        status = max(covering, key=lambda item: item[0])[3]
        previous = timeline[-1] if timeline else None
        if previous is not None and previous.end == lower and previous.status == status:
            previous.end = upper
        else:
            timeline.append(Interval(lower, upper, status))

    return timeline


def rest_runs(timeline):
    """Contiguous off-duty/sleeper stretches as ``(start, end)``; gaps break a run."""
    runs = []
    previous = None
    for interval in timeline:
        if interval.status in REST_STATUSES:
            if (previous is not None and previous.status in REST_STATUSES
                    and previous.end == interval.start):
                runs[-1] = (runs[-1][0], interval.end)
            else:
                runs.append((interval.start, interval.end))
        previous = interval
    return runs


def find_window_start(timeline, runs, rules):
    """
    Start of the current duty window: the first work interval after the most
    recent rest of at least ``reset_rest`` seconds. None when the driver has
    not worked since.
    """
    anchor = None
    for start, end in runs:
        if _seconds(end - start) >= rules.reset_rest:
            anchor = end

    for interval in timeline:
        if interval.status in WORK_STATUSES and (anchor is None or interval.start >= anchor):
            return interval.start
    return None


def _offset(start, seconds):
    return start + timedelta(seconds=seconds)


def _scan_window(state, timeline, rules):
    """Accumulate driving/on-duty time inside the window and flag limit crossings."""
    window_end = state.window_end
    driving = on_duty = since_break = rest_run = 0
    previous = None

    for interval in timeline:
        if interval.start < state.window_start:
            continue
        duration = interval.seconds
        contiguous = previous is not None and previous.end == interval.start

        if interval.status in REST_STATUSES:
            if contiguous and previous.status in REST_STATUSES:
                rest_run += duration
            else:
                rest_run = duration
            if rest_run >= rules.break_length:
                since_break = 0
        else:
            rest_run = 0
            if on_duty <= rules.max_on_duty < on_duty + duration:
                state.add_violation(
                    ON_DUTY_LIMIT,
                    "Exceeded 14-hour on-duty limit",
                    _offset(interval.start, rules.max_on_duty - on_duty),
                )
            on_duty += duration

            if interval.status == DRIVING:
                if driving <= rules.max_driving < driving + duration:
                    state.add_violation(
                        DRIVING_LIMIT,
                        "Exceeded 11-hour driving limit",
                        _offset(interval.start, rules.max_driving - driving),
                    )
                if since_break <= rules.break_after < since_break + duration:
                    state.add_violation(
                        BREAK_REQUIRED,
                        "Drove more than 8 hours without a 30-minute break",
                        _offset(interval.start, rules.break_after - since_break),
                    )
                if interval.end > window_end:
                    state.add_violation(
                        DUTY_WINDOW,
                        "Driving after the 14-hour duty window closed",
                        max(interval.start, window_end),
                    )
                driving += duration
                since_break += duration

        previous = interval

    state.driving_seconds = driving
    state.on_duty_seconds = on_duty
    state.driving_since_break_seconds = since_break


def _scan_cycle(state, timeline, runs, rules):
    """On-duty time in the rolling cycle, restarted by a 34-hour rest."""
    as_of = state.as_of
    cycle_start = as_of - timedelta(days=rules.cycle_days)
    for start, end in runs:
        if _seconds(end - start) >= rules.restart_rest and end > cycle_start:
            cycle_start = end

    used = sum(
        interval.seconds_within(cycle_start, as_of)
        for interval in timeline
        if interval.status in WORK_STATUSES
    )
    state.cycle_used_seconds = used
    if used > rules.cycle_limit:
        state.add_violation(
            CYCLE_LIMIT,
            f"Exceeded {rules.cycle_label} cycle limit",
            as_of,
        )


def calculate_hos_state(segments, as_of, rules=None, driver_id=None):
    """
    HOS state of one driver as of ``as_of``.

    Args:
        segments: iterable of Segment, in any order, possibly overlapping
        as_of: aware datetime; time after it is ignored
        rules: HOSRuleSet, defaults to the 70-hour/8-day property rules
        driver_id: carried through to the result

    Returns:
        HOSState
    """
    rules = rules or HOSRuleSet()
    state = HOSState(driver_id, as_of, rules)

    timeline = build_timeline(list(segments), as_of)
    runs = rest_runs(timeline)

    if timeline and timeline[-1].end == as_of:
        state.current_status = timeline[-1].status

    state.window_start = find_window_start(timeline, runs, rules)
    if state.window_start is not None:
        _scan_window(state, timeline, rules)

    _scan_cycle(state, timeline, runs, rules)

    if rules.split_sleeper:
        state.notes.append(
            "Split sleeper-berth pairing is not evaluated; "
            "the duty window resets only after 10 consecutive hours of rest."
        )

    return state
