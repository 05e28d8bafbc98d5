# backend/agrismart/services/dosage_service.py

"""
Fertilizer Dosage Calculator
----------------------------

Per-nutrient top-up using straight compound fertilizers:
  - N: Urea (46-0-0), target 50 ppm
  - P: DAP (18-46-0), target 25 ppm
  - K: MOP (0-0-60), target 200 ppm

amount_kg = ceil((target - current) * acres * factor / nutrient_pct * 100)
cost      = amount_kg * price_per_kg

DebouncedCalculator wraps build_plan() for live input (WebSocket): each
update() replaces the pending computation, only the last one after the
settle delay is delivered.
"""

import asyncio
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple

from agrismart.core.logger import logger
from agrismart.schemas.dosage import DosageInputs, DosageLine, DosagePlan

EMPTY_STATE_MESSAGE = "Enter details for recommendations."


@dataclass(frozen=True)
class CompoundFertilizer:
    nutrient: str
    target_ppm: float
    fertilizer: str
    conversion_factor: float
    nutrient_percent: float
    price_per_kg: int


COMPOUNDS = (
    CompoundFertilizer("nitrogen", 50, "Urea (46-0-0)", 2.17, 46, 25),
    CompoundFertilizer("phosphorus", 25, "DAP (18-46-0)", 2.17, 46, 30),
    CompoundFertilizer("potassium", 200, "MOP (0-0-60)", 1.67, 60, 20),
)


def compound_amount_kg(compound: CompoundFertilizer, current_ppm: float, field_size_acres: float) -> int:
    if current_ppm >= compound.target_ppm:
        return 0
    deficit = compound.target_ppm - current_ppm
    amount = deficit * field_size_acres * compound.conversion_factor / compound.nutrient_percent * 100
    if not math.isfinite(amount):
        raise ValueError(f"field size {field_size_acres} acres is out of range")
    return math.ceil(amount)


def calculate_dosage(
    nitrogen: float,
    phosphorus: float,
    potassium: float,
    field_size_acres: float,
) -> Tuple[List[DosageLine], int]:
    levels = {"nitrogen": nitrogen, "phosphorus": phosphorus, "potassium": potassium}
    lines: List[DosageLine] = []
    for compound in COMPOUNDS:
        amount = compound_amount_kg(compound, levels[compound.nutrient], field_size_acres)
        if amount > 0:
            lines.append(DosageLine(
                fertilizer=compound.fertilizer,
                amount_kg=amount,
                cost=amount * compound.price_per_kg,
            ))
    total_cost = sum(line.cost for line in lines)
    return lines, total_cost


def build_plan(inputs: DosageInputs) -> DosagePlan:
    """Full plan for the calculator; incomplete inputs give the empty state."""
    lines: List[DosageLine] = []
    total_cost = 0
    if inputs.crop_type and inputs.field_size_acres > 0:
        lines, total_cost = calculate_dosage(
            inputs.nitrogen, inputs.phosphorus, inputs.potassium, inputs.field_size_acres
        )

    return DosagePlan(
        crop_type=inputs.crop_type,
        field_size_acres=inputs.field_size_acres,
        lines=lines,
        total_cost=total_cost,
        message=None if lines else EMPTY_STATE_MESSAGE,
    )


class DebouncedCalculator:
    """
    Recomputes a DosagePlan once inputs stop changing for `settle_delay` seconds.

    `on_result` is awaited with each delivered plan. Nothing is delivered
    after close().
    """

    def __init__(self, on_result: Callable[[DosagePlan], Awaitable[None]], settle_delay: float = 0.5):
        self._on_result = on_result
        self.settle_delay = settle_delay
        self._pending: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def update(self, inputs: DosageInputs) -> None:
        if self._closed:
            raise RuntimeError("calculator is closed")
        if self._pending is not None:
            self._pending.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._run(inputs))

    async def _run(self, inputs: DosageInputs) -> None:
        await asyncio.sleep(self.settle_delay)
        if self._closed:
            return
        plan = build_plan(inputs)
        logger.info("Dosage plan computed", extra={"params": {"lines": len(plan.lines), "total_cost": plan.total_cost}})
        try:
            await self._on_result(plan)
        except Exception:
            # background task: nobody awaits it, so the failure is logged here
            logger.exception("Dosage plan delivery failed")

    async def close(self) -> None:
        self._closed = True
        task, self._pending = self._pending, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
