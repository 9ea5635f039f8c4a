"""Candidate start times for a working day."""

import logging
from datetime import time
from typing import List, Optional

from utils.datetime_utils import (
    MINUTES_PER_DAY,
    ClockLike,
    clock_to_minutes,
    minutes_to_clock,
)

logger = logging.getLogger(__name__)


def generate_slots(
    open_time: ClockLike, close_time: ClockLike, step_minutes: Optional[int]
) -> List[time]:
    """
    Start times from ``open_time`` in ``step_minutes`` steps, strictly
    before ``close_time``.

    No step (no service selected yet) or a non-positive step yields no
    slots. When close is not after open the window is extended by 24
    hours once, so emitted times past midnight wrap to 00:xx.

    Conflicts and past-ness are not filtered here.
    """
    if isinstance(step_minutes, bool) or not isinstance(step_minutes, int) or step_minutes <= 0:
        return []

    start = clock_to_minutes(open_time)
    end = clock_to_minutes(close_time)
    if end <= start:
        logger.warning(
            f"Close time {close_time} is not after open time {open_time}; "
            f"extending the window past midnight"
        )
        end += MINUTES_PER_DAY

    return [minutes_to_clock(m) for m in range(start, end, step_minutes)]
