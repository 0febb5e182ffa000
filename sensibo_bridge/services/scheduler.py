"""
Fleet scheduler - drives reconciliation across all pods on a cadence.

Pods are reconciled strictly one after another with a fixed delay between
them (no async gather) to stay inside the Sensibo API rate limit.
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from sensibo_bridge.services.reconciler import DeviceReconciler
from sensibo_bridge.utils.logging import get_logger

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]

DEFAULT_POLLING_INTERVAL = 300.0  # 5 minutes
LEGACY_POLLING_INTERVAL = 30.0
DEFAULT_INITIAL_DELAY = 10.0
DEFAULT_INTER_DEVICE_DELAY = 3.0


class FleetScheduler:
    """
    Owns the ordered set of device reconcilers and runs fleet cycles.

    Handles:
    - Discovery-ordered, sequential reconciliation
    - Mandatory inter-device delay (between pods only)
    - Fleet-wide overlap guard
    - Initial + periodic cycles as cancellable tasks
    """

    def __init__(
        self,
        polling_interval: float = DEFAULT_POLLING_INTERVAL,
        inter_device_delay: float = DEFAULT_INTER_DEVICE_DELAY,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        sleep: SleepFunc = asyncio.sleep
    ):
        """
        Initialize fleet scheduler.

        Args:
            polling_interval: Seconds between periodic cycles
            inter_device_delay: Seconds to wait between two pods in a cycle
            initial_delay: Seconds after start() before the first cycle
            sleep: Awaitable sleep (tests inject a fake clock)
        """
        self.polling_interval = polling_interval
        self.inter_device_delay = inter_device_delay
        self.initial_delay = initial_delay
        self._sleep = sleep

        self._reconcilers: Dict[str, DeviceReconciler] = {}
        self._cycle_in_progress = False
        self._initial_task: Optional[asyncio.Task] = None
        self._periodic_task: Optional[asyncio.Task] = None
        self.cycles_completed = 0

    def add(self, reconciler: DeviceReconciler) -> None:
        """Register a pod; polling order is registration order."""
        self._reconcilers[reconciler.device.id] = reconciler

    def get(self, device_id: str) -> Optional[DeviceReconciler]:
        return self._reconcilers.get(device_id)

    @property
    def reconcilers(self) -> List[DeviceReconciler]:
        return list(self._reconcilers.values())

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_in_progress

    @property
    def is_running(self) -> bool:
        return self._periodic_task is not None and not self._periodic_task.done()

    async def run_cycle(self) -> bool:
        """
        Reconcile every pod once, sequentially.

        Returns:
            True if the cycle ran, False if skipped because one is in progress
        """
        # Guard clause: cycle already running
        if self._cycle_in_progress:
            logger.info("fleet_cycle_skipped_in_progress")
            return False

        self._cycle_in_progress = True
        reconcilers = self.reconcilers
        try:
            logger.debug("fleet_cycle_started", devices=len(reconcilers))

            for index, reconciler in enumerate(reconcilers):
                try:
                    await reconciler.reconcile()
                except Exception as e:
                    logger.error(
                        "reconcile_failed",
                        device=reconciler.device.name,
                        error=str(e)
                    )

                # Rate limit: wait between pods, not after the last one
                if index < len(reconcilers) - 1:
                    await self._sleep(self.inter_device_delay)

            self.cycles_completed += 1
            logger.debug("fleet_cycle_finished", devices=len(reconcilers))
            return True
        finally:
            self._cycle_in_progress = False

    def start(self) -> None:
        """Schedule the initial cycle and the periodic cadence."""
        if self.is_running:
            return

        logger.info(
            "fleet_scheduler_started",
            devices=len(self._reconcilers),
            polling_interval=self.polling_interval,
            initial_delay=self.initial_delay
        )
        self._initial_task = asyncio.create_task(self._run_initial())
        self._periodic_task = asyncio.create_task(self._run_periodic())

    async def stop(self) -> None:
        """Cancel pending and in-flight cycles."""
        tasks = [t for t in (self._initial_task, self._periodic_task) if t is not None]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

        self._initial_task = None
        self._periodic_task = None
        logger.info("fleet_scheduler_stopped")

    async def _run_initial(self) -> None:
        await self._sleep(self.initial_delay)
        await self.run_cycle()

    async def _run_periodic(self) -> None:
        while True:
            await self._sleep(self.polling_interval)
            await self.run_cycle()
