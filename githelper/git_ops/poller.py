"""Background check for incoming commits on workspace repositories."""

import logging
import threading
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from ..config import Config
from ..ui import StatusDisplay, UserInterface
from .locator import RepositoryCandidate, ScanBounds, find_repositories, scan_bounds_from_config
from .operations import pull
from .remote_status import RemoteStatus, check_remote_status
from .utils import GitOperationResult

SYNC_ACTION = "Sync Changes"


class RemoteStatusPoller:
    """
    Periodically fetches every repository in the workspace and announces
    the first one that is behind its upstream.

    Features:
    - One background thread on a fixed period, no backoff or jitter
    - Repositories are rediscovered on every cycle
    - Repositories are checked one at a time
    - Per-repository failures are discarded so transient network trouble
      never produces notifications
    - Owns the status display; nothing else writes to it
    """

    def __init__(
        self,
        config: Config,
        ui: UserInterface,
        display: Optional[StatusDisplay] = None,
        locate: Callable[[Path, ScanBounds], Iterator[RepositoryCandidate]] = find_repositories,
        check: Callable[[Path], GitOperationResult] = check_remote_status,
        sync: Callable[[Path], GitOperationResult] = pull
    ):
        """
        Args:
            config: Configuration with workspace directory and poll settings
            ui: Interface used for notifications and progress
            display: Status widget; created and bound to the UI if omitted
            locate: Repository discovery function
            check: Per-repository remote status check
            sync: Function used when the user accepts the sync action
        """
        self.config = config
        self.ui = ui
        self.display = display or StatusDisplay(on_change=ui.render_status)
        self.logger = logging.getLogger('githelper.poller')
        self._locate = locate
        self._check = check
        self._sync = sync
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._lifecycle_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return (self._thread is not None and self._thread.is_alive()
                and self._stop_event is not None and not self._stop_event.is_set())

    def start(self) -> None:
        """Start the timer thread; a no-op if already running."""
        with self._lifecycle_lock:
            if self.is_running:
                return
            # One event per thread: a stopped thread mid-cycle ignores later starts
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="RemoteStatusPoller",
                daemon=True
            )
            self._thread.start()
        self.logger.info(
            f"Remote status polling started for {self.config.workspace_dir} "
            f"every {self.config.poll_interval:g}s"
        )

    def stop(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """
        Clear the timer. A cycle already in progress is not interrupted;
        its git calls finish or fail on their own.
        """
        with self._lifecycle_lock:
            if self._stop_event is not None:
                self._stop_event.set()
            thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self.logger.info("Remote status polling stopped")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.config.poll_interval):
            try:
                self.poll_once()
            except Exception as e:
                self.logger.debug(f"Remote status cycle failed: {e}", exc_info=True)

    def poll_once(self) -> List[RemoteStatus]:
        """
        Run a single cycle.

        Returns:
            RemoteStatus for each repository checked successfully this cycle
        """
        bounds = scan_bounds_from_config(self.config, self.config.poll_max_depth)
        statuses: List[RemoteStatus] = []

        for candidate in self._locate(self.config.workspace_dir, bounds):
            result = self._check(candidate.absolute_path)
            if not result.success:
                # Intentionally ignored: no remote, no upstream, offline or auth failure
                self.logger.debug(f"Skipping {candidate.display_name}: {result.message}")
                continue

            status: RemoteStatus = result.value
            statuses.append(status)
            if status.commits_behind > 0:
                # Only the first lagging repository is surfaced per cycle
                self._announce(candidate, status)
                return statuses

        self.display.hide()
        return statuses

    def _announce(self, candidate: RepositoryCandidate, status: RemoteStatus) -> None:
        author = status.latest_author or "Someone"
        self.display.update(f"{status.commits_behind} Incoming", f"Last change by {author}")
        self.logger.info(f"{candidate.display_name} is {status.commits_behind} commit(s) behind upstream")
        choice = self.ui.notify(
            f"Remote Update: {author} pushed {status.commits_behind} new commit(s).",
            [SYNC_ACTION]
        )
        if choice == SYNC_ACTION:
            self.sync_repository(status.repository_path, author)

    def sync_repository(self, repository_path: Path, author: str) -> GitOperationResult:
        """Pull the repository after the user accepted the sync action."""
        with self.ui.progress("Syncing..."):
            result = self._sync(repository_path)
        if result.success:
            self.ui.info(f"Successfully synced updates from {author}")
            self.display.hide()
        else:
            self.ui.error(result.message)
        return result
