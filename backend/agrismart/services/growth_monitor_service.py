# backend/agrismart/services/growth_monitor_service.py

"""
Crop Growth Monitor
-------------------

Purpose:
 - Estimate the current growth stage of a crop from its planting date
   (days after planting against a cumulative day-threshold table)
 - Progress percent against the last stage threshold (0-100)
 - Simulated field weather that drifts every few seconds, with simple
   advisory notifications (irrigation / mulching / stage announcement)

Stage i is active while current_day <= stages[i].days. Past the last
threshold the crop stays in its final stage.
"""

import asyncio
import random
from datetime import date
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from agrismart.core.logger import logger
from agrismart.schemas.growth import GrowthStage, GrowthStatus, WeatherReading


class UnknownCropError(ValueError):
    pass


# -------------------------------------------------------------
# Stage tables (cumulative days after planting)
# -------------------------------------------------------------
CROP_STAGES: Dict[str, Tuple[GrowthStage, ...]] = {
    "tomato": (
        GrowthStage(name="Germination", days=7, description="Seeds sprouting"),
        GrowthStage(name="Seedling", days=21, description="True leaves appear"),
        GrowthStage(name="Vegetative", days=45, description="Rapid growth"),
        GrowthStage(name="Flowering", days=65, description="Flowers forming"),
        GrowthStage(name="Fruiting", days=85, description="Fruits developing"),
    ),
    "rice": (
        GrowthStage(name="Germination", days=5, description="Seeds sprouting"),
        GrowthStage(name="Seedling", days=20, description="Young plants"),
        GrowthStage(name="Transplanting", days=25, description="Moving to field"),
        GrowthStage(name="Tillering", days=50, description="Multiple shoots"),
        GrowthStage(name="Panicle Formation", days=75, description="Grain heads forming"),
        GrowthStage(name="Maturity", days=120, description="Grains fully developed"),
    ),
}

TEMPERATURE_RANGE = (15.0, 40.0)
HUMIDITY_RANGE = (30.0, 90.0)
HIGH_TEMPERATURE_ALERT = 30.0
LOW_HUMIDITY_ALERT = 50.0


def get_stages(crop: str) -> Tuple[GrowthStage, ...]:
    stages = CROP_STAGES.get((crop or "").lower())
    if not stages:
        raise UnknownCropError(f"Unknown crop: {crop}")
    return stages


def days_since_planting(planting_date: Optional[date], today: Optional[date] = None) -> int:
    if planting_date is None:
        return 0
    today = today or date.today()
    return max(0, (today - planting_date).days)


def find_stage(stages: Tuple[GrowthStage, ...], current_day: int) -> GrowthStage:
    for stage in stages:
        if current_day <= stage.days:
            return stage
    return stages[-1]


def compute_growth_status(crop: str, planting_date: Optional[date], today: Optional[date] = None) -> GrowthStatus:
    stages = get_stages(crop)
    if planting_date is None:
        return GrowthStatus(crop=crop.lower(), planting_date=None)

    current_day = days_since_planting(planting_date, today)
    total_days = stages[-1].days or 1
    progress = min(100.0, max(0.0, current_day / total_days * 100))

    return GrowthStatus(
        crop=crop.lower(),
        planting_date=planting_date,
        current_day=current_day,
        current_stage=find_stage(stages, current_day),
        progress_percent=round(progress, 2),
    )


def _clamp(value: float, bounds: Tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, value))


def perturb_weather(reading: WeatherReading, rng: Optional[random.Random] = None) -> WeatherReading:
    rng = rng or random
    return WeatherReading(
        temperature=_clamp(reading.temperature + (rng.random() - 0.5) * 2, TEMPERATURE_RANGE),
        humidity=_clamp(reading.humidity + (rng.random() - 0.5) * 5, HUMIDITY_RANGE),
    )


def build_notifications(weather: WeatherReading, crop: str, status: GrowthStatus) -> List[str]:
    notifications = []
    if weather.temperature > HIGH_TEMPERATURE_ALERT:
        notifications.append("High temp! Consider watering.")
    if weather.humidity < LOW_HUMIDITY_ALERT:
        notifications.append("Low humidity. Mulching recommended.")
    if status.current_stage and status.current_day > 0:
        notifications.append(f"{crop} is in {status.current_stage.name} stage.")
    return notifications


TickHandler = Callable[[WeatherReading, List[str]], Awaitable[None]]


class WeatherSimulator:
    """
    Periodic weather drift for one monitoring session.

    start() spawns a single asyncio task; stop() cancels it and waits for it
    to finish, after which no further tick is delivered.
    """

    def __init__(
        self,
        on_tick: TickHandler,
        interval: float = 5.0,
        crop: str = "tomato",
        planting_date: Optional[date] = None,
        weather: Optional[WeatherReading] = None,
        rng: Optional[random.Random] = None,
    ):
        self._on_tick = on_tick
        self.interval = interval
        self.weather = weather or WeatherReading()
        self._rng = rng or random.Random()
        self._task: Optional[asyncio.Task] = None
        self._stopped = False
        self.set_plan(crop, planting_date)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_plan(self, crop: str, planting_date: Optional[date]) -> GrowthStatus:
        status = compute_growth_status(crop, planting_date)
        self.crop = status.crop
        self.planting_date = planting_date
        return status

    def tick(self) -> Tuple[WeatherReading, List[str]]:
        self.weather = perturb_weather(self.weather, self._rng)
        status = compute_growth_status(self.crop, self.planting_date)
        return self.weather, build_notifications(self.weather, self.crop, status)

    def start(self) -> None:
        if self.running:
            return
        self._stopped = False
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self._stopped:
                return
            weather, notifications = self.tick()
            try:
                await self._on_tick(weather, notifications)
            except Exception:
                logger.exception("Weather tick delivery failed, simulation halted", extra={"params": {"crop": self.crop}})
                return

    async def stop(self) -> None:
        self._stopped = True
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Weather simulation stopped", extra={"params": {"crop": self.crop}})
