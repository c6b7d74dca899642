import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

from ..utils.log import log_line

TickFunc = Callable[[], Awaitable[Any]]


class RepeatingTask:
    """Calls an async function every interval_s until stopped.

    A failing tick is logged and the next tick runs as usual, which is the
    retry policy for transient backend errors. start() always restarts, and
    stop() is safe to call any number of times.
    """

    def __init__(self, name: str, interval_s: float, func: TickFunc, run_immediately: bool = False):
        self.name = name
        self.interval_s = float(interval_s)
        self.func = func
        self.run_immediately = run_immediately
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"timer:{self.name}")

    def stop(self) -> Optional[asyncio.Task]:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        return task

    async def _tick(self) -> None:
        self.ticks += 1
        try:
            await self.func()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_line(f"TIMER {self.name} ERROR | err={e!r}", "ERROR")

    async def _run(self) -> None:
        if self.run_immediately:
            await self._tick()
        while True:
            await asyncio.sleep(self.interval_s)
            await self._tick()


class Scheduler:
    """Owns the named repeating tasks of one session."""

    def __init__(self):
        self.tasks: Dict[str, RepeatingTask] = {}

    def add(self, name: str, interval_s: float, func: TickFunc, run_immediately: bool = False) -> RepeatingTask:
        old = self.tasks.get(name)
        if old:
            old.stop()
        task = RepeatingTask(name, interval_s, func, run_immediately=run_immediately)
        self.tasks[name] = task
        return task

    def start(self, name: str) -> None:
        self.tasks[name].start()

    def stop(self, name: str) -> None:
        task = self.tasks.get(name)
        if task:
            task.stop()

    def start_all(self) -> None:
        for task in self.tasks.values():
            task.start()

    def stop_all(self) -> None:
        for task in self.tasks.values():
            task.stop()

    async def close(self) -> None:
        """Stop every timer and wait until none of them can run again."""
        pending = [t for t in (task.stop() for task in self.tasks.values()) if t is not None]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        log_line(f"SCHEDULER CLOSED | timers={len(self.tasks)}")


class Debouncer:
    """Trailing debounce: func runs once, delay_s after the last trigger()."""

    def __init__(self, delay_s: float, func: Callable[..., Any], loop: Optional[asyncio.AbstractEventLoop] = None):
        self.delay_s = float(delay_s)
        self.func = func
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._args: tuple = ()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args: Any) -> None:
        loop = self._loop or asyncio.get_running_loop()
        self.cancel()
        self._args = args
        self._handle = loop.call_later(self.delay_s, self._fire)

    def flush(self) -> bool:
        """Run the pending call right now. Returns False if nothing was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        args, self._args = self._args, ()
        try:
            self.func(*args)
        except Exception as e:
            log_line(f"DEBOUNCE ERROR | err={e!r}", "ERROR")
