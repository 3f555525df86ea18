from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional
import logging, threading

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .entities import EntityRecord, arrays_equal, filter_sensors, filter_toggleable
from .ha_api import HAClient

_LOGGER = logging.getLogger(__name__)

JOB_ID = "hass_gshell_poll"
KINDS = ("switches", "sensors")

OnChange = Callable[[str, List[EntityRecord]], None]

@dataclass
class PollerState:
    running: bool = False
    next_run: Optional[str] = None
    last_run: Optional[str] = None
    last_error: Optional[str] = None

class EntityPoller:
    """Refreshes switch and sensor lists off the caller's thread.

    One ``/api/states`` fetch per run feeds both lists. ``on_change`` fires
    per kind only when that list differs from the previous run.
    """

    def __init__(self, client: HAClient, on_change: Optional[OnChange] = None):
        self.client = client
        self._on_change = on_change
        self._sched = BackgroundScheduler()
        self._lock = threading.Lock()
        self._poll_lock = threading.Lock()
        self.lists: Dict[str, Optional[List[EntityRecord]]] = {k: None for k in KINDS}
        self.state = PollerState()

    def start(self, interval_sec: Optional[int] = None):
        interval = int(interval_sec or self.client.settings.poll_interval_sec)
        with self._lock:
            self._stop_locked()
            self._sched.add_job(
                self._job,
                trigger=IntervalTrigger(seconds=interval),
                id=JOB_ID,
                replace_existing=True,
                next_run_time=datetime.now(),
                max_instances=1,
                coalesce=True,
            )
            self._sched.start()
            self.state.running = True
            self._update_next_run()
        _LOGGER.info("Polling %s every %ss", self.client.states_url(), interval)

    def stop(self):
        with self._lock:
            self._stop_locked()

    def _stop_locked(self):
        if self._sched.running:
            self._sched.remove_all_jobs()
            self._sched.shutdown(wait=False)
            self._sched = BackgroundScheduler()
        self.state.running = False
        self.state.next_run = None

    def refresh_now(self) -> Dict[str, List[EntityRecord]]:
        with self._poll_lock:
            now = datetime.now().astimezone()
            self.state.last_run = now.isoformat()
            res = self.client.get_states()
            if not res.ok:
                self.state.last_error = f"{res.error.value}: {res.detail}"
                fresh = {k: [] for k in KINDS}
            else:
                self.state.last_error = None
                fresh = {"switches": filter_toggleable(res.data), "sensors": filter_sensors(res.data)}
            for kind in KINDS:
                self._publish(kind, fresh[kind])
            return fresh

    def _publish(self, kind: str, records: List[EntityRecord]):
        if arrays_equal(self.lists[kind], records):
            return
        self.lists[kind] = records
        _LOGGER.debug("%s changed: %d entities", kind, len(records))
        if self._on_change is None:
            return
        try:
            self._on_change(kind, records)
        except Exception:
            _LOGGER.exception("on_change callback failed for %s", kind)

    def _job(self):
        self.refresh_now()
        self._update_next_run()

    def _update_next_run(self):
        job = self._sched.get_job(JOB_ID)
        self.state.next_run = job.next_run_time.isoformat() if job and job.next_run_time else None
