"""Location stream adapters.

A stream turns foreground and background location tracking into one sequence
of sample batches handed to a single subscriber. Background delivery goes
through a named task in a `BackgroundTaskRegistry`, which stands in for the
task handler an operating system invokes while the app is not visible.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Iterable, Protocol

from pacer.models import LocationSample
from pacer.models.settings import validate_gps_interval

from .errors import (
    PermissionDenied,
    SensorUnavailable,
    TrackingError,
    TransientSensorGap,
)

logger = logging.getLogger(__name__)

BACKGROUND_TASK_NAME = "pacer-background-location"

BatchCallback = Callable[[list[LocationSample]], Awaitable[None]]
ErrorCallback = Callable[[TrackingError], Awaitable[None]]


class TrackingMode(str, Enum):
    FOREGROUND = "foreground"
    BACKGROUND = "background"


@dataclass
class _TaskHandler:
    on_batch: BatchCallback
    on_error: ErrorCallback


class BackgroundTaskRegistry:
    """Named background location tasks.

    Registering a name that is already registered is a no-op, so a task can be
    declared again every time tracking resumes.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, _TaskHandler] = {}

    def register(
        self, name: str, on_batch: BatchCallback, on_error: ErrorCallback
    ) -> bool:
        """Register a task handler. Returns False if the name was already taken."""
        if name in self._handlers:
            logger.debug(f"Background task {name} already registered")
            return False
        self._handlers[name] = _TaskHandler(on_batch=on_batch, on_error=on_error)
        logger.info(f"Registered background task {name}")
        return True

    def unregister(self, name: str) -> None:
        if self._handlers.pop(name, None) is not None:
            logger.info(f"Unregistered background task {name}")

    def is_registered(self, name: str) -> bool:
        return name in self._handlers

    async def dispatch(
        self,
        name: str,
        samples: Iterable[LocationSample] = (),
        error: TrackingError | None = None,
    ) -> bool:
        """Invoke a task with a batch of samples, or with an error.

        Returns False when no handler is registered under the name; deliveries
        that arrive after unregistration are dropped.
        """
        handler = self._handlers.get(name)
        if handler is None:
            logger.debug(f"Dropping delivery for unregistered background task {name}")
            return False
        if error is not None:
            await handler.on_error(error)
        else:
            await handler.on_batch(list(samples))
        return True


class LocationStream(ABC):
    """Single-subscriber stream of location sample batches.

    `subscribe` while already subscribed is a no-op success and `unsubscribe`
    may be called any number of times. Batches can be empty and carry no
    ordering guarantee beyond acquisition order.
    """

    def __init__(
        self,
        registry: BackgroundTaskRegistry | None = None,
        task_name: str = BACKGROUND_TASK_NAME,
    ) -> None:
        self.registry = registry or BackgroundTaskRegistry()
        self.task_name = task_name
        self._mode: TrackingMode | None = None
        self._on_batch: BatchCallback | None = None
        self._on_error: ErrorCallback | None = None
        self.interval_seconds: int | None = None

    @property
    def mode(self) -> TrackingMode | None:
        return self._mode

    @property
    def is_subscribed(self) -> bool:
        return self._mode is not None

    async def subscribe(
        self,
        mode: TrackingMode,
        on_batch: BatchCallback,
        on_error: ErrorCallback,
        interval_seconds: int,
    ) -> None:
        """Start delivering batches to `on_batch`.

        Raises:
            ValueError: If the interval is outside [1, 300] seconds.
            PermissionDenied: If the platform refuses location access.
            TrackingStartFailure: If delivery cannot begin.
        """
        validate_gps_interval(interval_seconds)
        if self._mode is not None:
            logger.debug(f"Location stream already subscribed ({self._mode.value})")
            return

        self._mode = mode
        self._on_batch = on_batch
        self._on_error = on_error
        self.interval_seconds = interval_seconds
        try:
            if mode is TrackingMode.BACKGROUND:
                self.registry.register(self.task_name, on_batch, on_error)
                await self._start_background(interval_seconds)
            else:
                await self._start_foreground(interval_seconds)
        except Exception:
            self._clear()
            if mode is TrackingMode.BACKGROUND:
                self.registry.unregister(self.task_name)
            raise
        logger.info(
            f"Subscribed to location stream in {mode.value} mode "
            f"every {interval_seconds}s"
        )

    async def unsubscribe(self) -> None:
        mode = self._mode
        if mode is None:
            return
        self._clear()
        if mode is TrackingMode.BACKGROUND:
            self.registry.unregister(self.task_name)
            await self._stop_background()
        else:
            await self._stop_foreground()
        logger.info(f"Unsubscribed from location stream ({mode.value})")

    def _clear(self) -> None:
        self._mode = None
        self._on_batch = None
        self._on_error = None

    async def _deliver(self, samples: list[LocationSample]) -> bool:
        on_batch = self._on_batch
        if on_batch is None:
            return False
        await on_batch(samples)
        return True

    async def _report(self, error: TrackingError) -> None:
        on_error = self._on_error
        if on_error is None:
            logger.warning(f"Location stream error with no subscriber: {error}")
            return
        await on_error(error)

    @abstractmethod
    async def current_location(self) -> LocationSample | None:
        """Get a single fix, or None when none can be had right now."""

    @abstractmethod
    async def _start_foreground(self, interval_seconds: int) -> None: ...

    @abstractmethod
    async def _stop_foreground(self) -> None: ...

    async def _start_background(self, interval_seconds: int) -> None:
        return None

    async def _stop_background(self) -> None:
        return None


class LocationProvider(Protocol):
    async def read(self) -> list[LocationSample]:
        """Return the fixes acquired since the last read.

        Raises:
            SensorUnavailable: If the sensor has nothing to give right now.
            PermissionDenied: If location access has been revoked.
        """
        ...


class PollingLocationStream(LocationStream):
    """Polls a `LocationProvider` once per interval.

    Foreground batches go straight to the subscriber. In background mode the
    same loop runs, but each batch or error is dispatched through the
    registered background task, so deliveries stop as soon as the task is
    unregistered.
    """

    def __init__(
        self,
        provider: LocationProvider,
        registry: BackgroundTaskRegistry | None = None,
        task_name: str = BACKGROUND_TASK_NAME,
    ) -> None:
        super().__init__(registry=registry, task_name=task_name)
        self.provider = provider
        self._task: asyncio.Task[None] | None = None

    async def current_location(self) -> LocationSample | None:
        try:
            samples = await self.provider.read()
        except TrackingError as e:
            logger.warning(f"Could not get current location: {e}")
            return None
        return samples[-1] if samples else None

    async def _start_foreground(self, interval_seconds: int) -> None:
        self._start_polling(TrackingMode.FOREGROUND, interval_seconds)

    async def _stop_foreground(self) -> None:
        await self._stop_polling()

    async def _start_background(self, interval_seconds: int) -> None:
        self._start_polling(TrackingMode.BACKGROUND, interval_seconds)

    async def _stop_background(self) -> None:
        await self._stop_polling()

    def _start_polling(self, mode: TrackingMode, interval_seconds: int) -> None:
        self._task = asyncio.create_task(self._poll(mode, interval_seconds))

    async def _stop_polling(self) -> None:
        task, self._task = self._task, None
        if task is None or task is asyncio.current_task():
            # The loop notices the cleared mode on its next pass.
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _send(self, mode: TrackingMode, samples: list[LocationSample]) -> None:
        if mode is TrackingMode.BACKGROUND:
            await self.registry.dispatch(self.task_name, samples)
        else:
            await self._deliver(samples)

    async def _send_error(self, mode: TrackingMode, error: TrackingError) -> None:
        if mode is TrackingMode.BACKGROUND:
            await self.registry.dispatch(self.task_name, error=error)
        else:
            await self._report(error)

    async def _poll(self, mode: TrackingMode, interval_seconds: int) -> None:
        while self._mode is mode:
            try:
                samples = await self.provider.read()
            except TransientSensorGap as e:
                logger.debug(f"No location this tick: {e}")
                await self._send_error(mode, e)
            except PermissionDenied as e:
                logger.error(f"Location permission revoked while polling: {e}")
                await self._send_error(mode, e)
                return
            except Exception as e:
                logger.warning(
                    f"Location provider failed while polling: {type(e).__name__}: {e}"
                )
                await self._send_error(
                    mode, SensorUnavailable(f"{type(e).__name__}: {e}")
                )
            else:
                await self._send(mode, samples)
            await asyncio.sleep(interval_seconds)


class PushLocationStream(LocationStream):
    """A stream fed by a client that pushes the fixes it acquires.

    Foreground batches go straight to the subscriber; background batches are
    dispatched through the registered background task.
    """

    def __init__(
        self,
        initial_fix: LocationSample | None = None,
        registry: BackgroundTaskRegistry | None = None,
        task_name: str = BACKGROUND_TASK_NAME,
    ) -> None:
        super().__init__(registry=registry, task_name=task_name)
        self.initial_fix = initial_fix

    async def current_location(self) -> LocationSample | None:
        return self.initial_fix

    async def _start_foreground(self, interval_seconds: int) -> None:
        # The client samples at its own pace; nothing to schedule here.
        return None

    async def _stop_foreground(self) -> None:
        return None

    async def push(
        self,
        samples: Iterable[LocationSample],
        mode: TrackingMode = TrackingMode.FOREGROUND,
    ) -> bool:
        """Deliver a pushed batch. Returns False if nobody is subscribed."""
        batch = list(samples)
        if mode is TrackingMode.BACKGROUND and self.registry.is_registered(
            self.task_name
        ):
            return await self.registry.dispatch(self.task_name, batch)
        if self._mode is None:
            logger.debug(f"Dropping {len(batch)} pushed samples, stream not subscribed")
            return False
        return await self._deliver(batch)

    async def report(self, error: TrackingError) -> None:
        """Forward an error the client hit while acquiring fixes."""
        await self._report(error)
