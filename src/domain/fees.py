from datetime import datetime, timedelta
from typing import Optional

from src.domain.common import VehicleClass
from src.domain.exceptions import ValidationError
from src.domain.rates import RateTable


ONE_HOUR = timedelta(hours=1)

_default_rate_table = RateTable()


def billable_hours(entry_time: datetime, exit_time: datetime) -> int:
    """Whole hours charged for a stay: any started hour counts, minimum one."""
    if exit_time < entry_time:
        raise ValidationError("Exit time cannot be before entry time")
    hours, remainder = divmod(exit_time - entry_time, ONE_HOUR)
    if remainder:
        hours += 1
    return max(1, hours)


def compute_fee(
    entry_time: datetime,
    exit_time: datetime,
    vehicle_class: VehicleClass,
    rate_table: Optional[RateTable] = None,
) -> int:
    rate = (rate_table or _default_rate_table).rate_for(vehicle_class)
    hours = billable_hours(entry_time, exit_time)
    if hours <= 1:
        return rate.first_hour_fee
    return rate.first_hour_fee + (hours - 1) * rate.hourly_fee
