from typing import Dict, Mapping, Optional

from src.domain.common import VehicleClass
from src.domain.entities import RateSchedule
from src.domain.exceptions import RateConfigurationError


DEFAULT_RATES: Dict[VehicleClass, RateSchedule] = {
    VehicleClass.CAR: RateSchedule(first_hour_fee=5000, hourly_fee=3000),
    VehicleClass.MOTORCYCLE: RateSchedule(first_hour_fee=2000, hourly_fee=1000),
    VehicleClass.TRUCK: RateSchedule(first_hour_fee=10000, hourly_fee=5000),
}


class RateTable:
    """Maps each vehicle class to its two-tier price schedule."""

    def __init__(self, rates: Optional[Mapping[VehicleClass, RateSchedule]] = None):
        self._rates = dict(DEFAULT_RATES if rates is None else rates)
        missing = [vehicle_class.value for vehicle_class in VehicleClass if vehicle_class not in self._rates]
        if missing:
            raise RateConfigurationError(f"No rate schedule configured for {', '.join(missing)}")

    def rate_for(self, vehicle_class: VehicleClass) -> RateSchedule:
        try:
            return self._rates[vehicle_class]
        except KeyError:
            raise RateConfigurationError(f"No rate schedule configured for {vehicle_class}") from None

    def as_dict(self) -> Dict[VehicleClass, RateSchedule]:
        return dict(self._rates)

    @classmethod
    def from_settings(cls, settings) -> "RateTable":
        return cls({
            VehicleClass.CAR: RateSchedule(settings.CAR_FIRST_HOUR_FEE, settings.CAR_HOURLY_FEE),
            VehicleClass.MOTORCYCLE: RateSchedule(settings.MOTORCYCLE_FIRST_HOUR_FEE, settings.MOTORCYCLE_HOURLY_FEE),
            VehicleClass.TRUCK: RateSchedule(settings.TRUCK_FIRST_HOUR_FEE, settings.TRUCK_HOURLY_FEE),
        })
