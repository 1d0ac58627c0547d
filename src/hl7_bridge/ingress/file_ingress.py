"""
File Ingress - Directory Poller.

Every regular, non-hidden file in the input directory is one message.
Processed files are moved out of the way so they are never picked up
twice:

    - COMPLETED / RECOVERED -> <input>/<done_directory>
    - FATAL                 -> <input>/<error_directory>

Design Notes:
    - A file is tracked as in flight from submission until it is moved,
      so overlapping polls never process it concurrently
    - Work runs on a fixed-size thread pool, which bounds concurrent
      FHIR calls
    - A file whose exchange ran but which could not be moved is never
      resubmitted
"""

from __future__ import annotations

import logging
import stat
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set

from hl7_bridge.domain.entities import Exchange, ExchangeState, RawInput
from hl7_bridge.domain.errors import ExchangeFailed
from hl7_bridge.pipeline.route_pipeline import RoutePipeline

logger = logging.getLogger(__name__)


class DirectoryPoller:
    """Feeds files from a directory into a route pipeline."""

    def __init__(
        self,
        pipeline: RoutePipeline,
        input_directory: Path,
        done_directory: str = ".done",
        error_directory: str = ".error",
        poll_interval_seconds: float = 1.0,
        max_workers: int = 4,
    ) -> None:
        """
        Initialize poller.

        Args:
            pipeline: Pipeline for the file route
            input_directory: Directory to watch
            done_directory: Subdirectory for processed files
            error_directory: Subdirectory for files whose exchange was Fatal
            poll_interval_seconds: Delay between scans
            max_workers: Size of the processing thread pool
        """
        self.pipeline = pipeline
        self.input_directory = Path(input_directory)
        self.done_path = self.input_directory / done_directory
        self.error_path = self.input_directory / error_directory
        self.poll_interval_seconds = poll_interval_seconds
        self.max_workers = max_workers

        self._in_flight: Set[Path] = set()
        self._stranded: Set[Path] = set()
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def in_flight(self) -> Set[Path]:
        with self._lock:
            return set(self._in_flight)

    @property
    def stranded(self) -> Set[Path]:
        """Files left in place after a failure that followed submission."""
        with self._lock:
            return set(self._stranded)

    def start(self) -> None:
        """Start polling in a background thread."""
        if self._thread is not None:
            raise RuntimeError("DirectoryPoller already started")
        self.input_directory.mkdir(parents=True, exist_ok=True)
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="hl7-directory-poller", daemon=True
        )
        self._thread.start()
        logger.info(f"Watching {self.input_directory} every {self.poll_interval_seconds}s")

    def stop(self, wait: bool = True) -> None:
        """Stop polling; optionally wait for in-flight files."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
        logger.info(f"Stopped watching {self.input_directory}")

    def join(self, timeout: Optional[float] = None) -> None:
        """Block until the polling thread exits."""
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception(f"Scan of {self.input_directory} failed, retrying")
            self._stop_event.wait(self.poll_interval_seconds)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="hl7-file"
                )
            return self._executor

    def pending_files(self) -> List[Path]:
        """Files waiting in the input directory, oldest first."""
        if not self.input_directory.is_dir():
            return []
        entries = []
        for path in self.input_directory.iterdir():
            if path.name.startswith("."):
                continue
            try:
                info = path.stat()
            except FileNotFoundError:
                # moved out by a worker during the scan
                continue
            if stat.S_ISREG(info.st_mode):
                entries.append((info.st_mtime, path.name, path))
        return [path for _, _, path in sorted(entries)]

    def poll_once(self) -> List[Future]:
        """
        Submit every pending file that is not in flight or stranded.

        Returns:
            Futures resolving to the finished Exchange of each file
        """
        futures = []
        for path in self.pending_files():
            with self._lock:
                if path in self._in_flight or path in self._stranded:
                    continue
                self._in_flight.add(path)
            future = self._get_executor().submit(self._process_file, path)
            future.add_done_callback(self._log_failure)
            futures.append(future)
        if futures:
            logger.debug(f"Submitted {len(futures)} files from {self.input_directory}")
        return futures

    def _log_failure(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(
                f"File worker failed: {type(error).__name__}: {error}",
                exc_info=(type(error), error, error.__traceback__),
            )

    def _process_file(self, path: Path) -> Optional[Exchange]:
        """
        Run one file through the pipeline and move it.

        A file that cannot be moved after its exchange ran, or whose
        exchange raised something other than ExchangeFailed, is stranded:
        it stays in the input directory but is never submitted again.
        """
        try:
            try:
                payload = path.read_bytes()
            except FileNotFoundError:
                logger.warning(f"File {path.name} disappeared before processing")
                return None

            logger.info(f"Converting {path.name}")
            try:
                exchange = self.pipeline.process(RawInput(payload=payload, source=path.name))
                target = self.done_path
            except ExchangeFailed as e:
                logger.error(f"File {path.name} failed in stage {e.exchange.failed_stage}: {e}")
                exchange = e.exchange
                target = self.error_path
            except Exception:
                self._strand(path)
                raise

            try:
                self._move(path, target)
            except OSError:
                self._strand(path)
                raise
            if exchange.state != ExchangeState.FATAL:
                logger.info(f"FHIR server {path.name}: {exchange.body}")
            return exchange
        finally:
            with self._lock:
                self._in_flight.discard(path)

    def _strand(self, path: Path) -> None:
        with self._lock:
            self._stranded.add(path)
        logger.error(f"File {path.name} left in {self.input_directory}, not resubmitting")

    def _move(self, path: Path, directory: Path) -> Path:
        """Move a file, suffixing a timestamp on name clashes."""
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / path.name
        if target.exists():
            stamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
            target = directory / f"{path.stem}.{stamp}{path.suffix}"
        return path.replace(target)
