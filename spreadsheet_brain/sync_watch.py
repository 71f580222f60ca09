# spreadsheet_brain/sync_watch.py
"""
Keeping the graph fresh.

LiveSync polls the source's last-modified time on a fixed delay; `watch`
reacts to filesystem events on a local workbook instead.
"""
import logging
import pathlib
import threading
import time
from typing import Callable

import requests
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .brain import SpreadsheetBrain

logger = logging.getLogger(__name__)


class LiveSync(threading.Thread):
    """Background reloader.

    Each cycle waits ``interval`` seconds after the previous one finished, so
    a slow fetch + rebuild delays the next cycle instead of overlapping it.
    """

    def __init__(
        self,
        brain: SpreadsheetBrain,
        interval: float = 30.0,
        on_reload: Callable[[], None] | None = None,
    ):
        super().__init__(name="live-sync", daemon=True)
        self.brain = brain
        self.interval = interval
        self.on_reload = on_reload
        self._stopped = threading.Event()

    def poll_once(self) -> bool:
        """Reload if the document changed since the published graph was fetched.

        True if reloaded. A brain that has never loaded from its source is
        always reloaded.
        """
        modified = self.brain.source.fetch_last_modified(self.brain.document_id)
        seen = self.brain.loaded_modified
        if seen is not None and modified <= seen:
            return False
        logger.info("[Live Sync] Spreadsheet updated. Reloading…")
        self.brain.reload()
        if self.on_reload is not None:
            self.on_reload()
        return True

    def run(self) -> None:
        logger.info(f"Live sync started (every {self.interval}s)")
        try:
            self.poll_once()
        except Exception:
            logger.exception("[Live Sync] Could not fetch last modified time")
        while not self._stopped.wait(self.interval):
            try:
                self.poll_once()
            except Exception:
                logger.exception("[Live Sync] Error")

    def stop(self) -> None:
        self._stopped.set()


class _Handler(FileSystemEventHandler):
    def __init__(self, brain: SpreadsheetBrain, path, notify_url: str | None = None):
        self.brain = brain
        self.path = pathlib.Path(path).resolve()
        self.notify_url = notify_url

    def on_modified(self, event):
        if pathlib.Path(event.src_path).resolve() == self.path:
            print(f"🔄  {self.path.name} changed – reloading…")
            try:
                self.brain.reload()
            except Exception:
                logger.exception(f"Reload of {self.path.name} failed")
                return
            if self.notify_url:
                try:
                    requests.post(self.notify_url, timeout=5)
                except requests.RequestException as e:
                    logger.warning(f"Could not notify {self.notify_url}: {e}")
            print(f"✅  Graph reloaded. {self.brain.summary()}")


def watch(brain: SpreadsheetBrain, xlsx_path: str, notify_url: str | None = None):
    """Block, reloading ``brain`` whenever the workbook is saved. Load it first."""
    p = pathlib.Path(xlsx_path).resolve()
    obs = Observer()
    obs.schedule(_Handler(brain, p, notify_url), str(p.parent), recursive=False)
    obs.start()
    print(f"👀  Watching `{p}` for edits (Ctrl-C to exit)")
    try:
        while True:
            time.sleep(1)
    finally:
        obs.stop()
        obs.join()
