"""Commit enumeration for the tracked manifest file.

Commits are discovered by a worker thread running ``git log`` and handed
to the consumer through a bounded queue, so commit discovery overlaps
with snapshot reading and parsing. The consumer sees identifiers strictly
in the order git printed them (oldest first).
"""

import logging
import queue
import subprocess
import tempfile
import threading
from typing import Dict, Iterator, Optional

from .config import RunConfig
from .errors import HistoryQueryError
from .vcs import git_command

logger = logging.getLogger(__name__)

# Marks the end of the stream; the worker always sends it unless cancelled.
_DONE = object()

_POLL_INTERVAL = 0.1


class CommitEnumerator:
    """Lazy, cancellable stream of commit ids that touched one file."""

    def __init__(
        self,
        repository_path: str,
        file_path: str,
        max_count: int,
        capacity: int,
        env: Optional[Dict[str, str]] = None,
        timeout: int = 300,
    ):
        self.repository_path = repository_path
        self.file_path = file_path
        self.max_count = max_count
        self.timeout = timeout
        self.env = env

        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=max(1, capacity))
        self._cancelled = threading.Event()
        self._timed_out = threading.Event()
        self._error: Optional[HistoryQueryError] = None
        self._process: Optional[subprocess.Popen] = None
        self._process_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._exhausted = False

    @classmethod
    def from_config(cls, config: RunConfig) -> "CommitEnumerator":
        return cls(
            repository_path=config.repository_path,
            file_path=config.file_path,
            max_count=config.commits_count,
            capacity=config.queue_capacity,
            env=config.git_env,
            timeout=config.git_timeout,
        )

    @property
    def command(self) -> list:
        return git_command(
            "log",
            "-n",
            str(self.max_count),
            "--pretty=format:%H",
            "--reverse",
            "--",
            self.file_path,
        )

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start(self) -> "CommitEnumerator":
        """Start the worker thread. Calling it twice has no effect."""
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._produce, name="CommitEnumerator", daemon=True
            )
            self._thread.start()
        return self

    def cancel(self) -> None:
        """Stop enumeration and release the git subprocess."""
        self._cancelled.set()
        self._kill_process()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)

    def __enter__(self) -> "CommitEnumerator":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cancel()

    def __iter__(self) -> Iterator[str]:
        self.start()
        while not self._exhausted:
            item = self._get()
            if item is _DONE:
                self._exhausted = True
                break
            yield item  # type: ignore[misc]

        if self._error is not None:
            raise self._error

    def _get(self) -> object:
        """Block until the worker hands over the next item."""
        while True:
            try:
                return self._queue.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                if self._thread is not None and not self._thread.is_alive():
                    # worker finished; drain anything it left behind
                    try:
                        return self._queue.get_nowait()
                    except queue.Empty:
                        return _DONE

    def _put(self, item: object) -> bool:
        """Hand ``item`` to the consumer; False if cancelled while waiting."""
        while not self._cancelled.is_set():
            try:
                self._queue.put(item, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def _kill_process(self) -> None:
        with self._process_lock:
            process = self._process
        if process is not None and process.poll() is None:
            process.kill()

    def _produce(self) -> None:
        """Worker body: run git log and stream identifiers into the queue."""
        try:
            self._stream_commits()
        except HistoryQueryError as e:
            self._error = e
            logger.error("Commit enumeration failed", extra={"reason": e.message})
        except Exception as e:
            self._error = HistoryQueryError(self.file_path, str(e))
            logger.exception("Unexpected commit enumeration failure")
        finally:
            self._put(_DONE)

    def _expire(self) -> None:
        """Deadline callback: kill git log once the timeout has elapsed."""
        self._timed_out.set()
        self._kill_process()

    def _stream_commits(self) -> None:
        logger.debug(
            "Enumerating commits",
            extra={"repository": self.repository_path, "path": self.file_path},
        )
        # stderr is spooled to disk and only read back on failure
        with tempfile.TemporaryFile() as stderr_file:
            try:
                process = subprocess.Popen(
                    self.command,
                    cwd=self.repository_path,
                    env=self.env,
                    stdout=subprocess.PIPE,
                    stderr=stderr_file,
                    text=True,
                )
            except OSError as e:
                raise HistoryQueryError(self.file_path, str(e)) from e

            with self._process_lock:
                self._process = process

            deadline = threading.Timer(self.timeout, self._expire)
            deadline.daemon = True
            deadline.start()

            count = 0
            try:
                try:
                    for line in process.stdout or ():
                        commit_id = line.strip()
                        if not commit_id:
                            continue
                        if not self._put(commit_id):
                            logger.debug("Commit enumeration cancelled", extra={"sent": count})
                            return
                        count += 1
                except (OSError, ValueError, UnicodeDecodeError) as e:
                    if self._cancelled.is_set():
                        return
                    if not self._timed_out.is_set():
                        raise HistoryQueryError(
                            self.file_path, f"unreadable output: {e}"
                        ) from e

                returncode = process.wait()

                if self._cancelled.is_set():
                    return
                if self._timed_out.is_set():
                    raise HistoryQueryError(
                        self.file_path, f"git log timed out after {self.timeout}s"
                    )
                if returncode != 0:
                    stderr_file.seek(0)
                    stderr = stderr_file.read().decode("utf-8", errors="replace").strip()
                    raise HistoryQueryError(
                        self.file_path, stderr or f"git log exited with status {returncode}"
                    )
                if count == 0:
                    raise HistoryQueryError(
                        self.file_path, "no commit in history touches this path"
                    )
            finally:
                deadline.cancel()
                if process.poll() is None:
                    process.kill()
                    process.wait()
                if process.stdout:
                    process.stdout.close()

        logger.info("Commit enumeration finished", extra={"commits": count})
