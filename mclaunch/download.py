"""Multi-threaded download of the files needed by a version: client JAR, libraries and
assets.
"""

from urllib.error import HTTPError, URLError
from http.client import HTTPException
from threading import Thread
from pathlib import Path
from queue import Queue
import urllib.request
import urllib.parse
import hashlib
import time

from .http import ssl_context
from . import LAUNCHER_NAME, LAUNCHER_VERSION

from typing import Optional, List, Tuple, Iterator


class DownloadEntry:
    """A file to download, with optional expected size and sha1 used both to skip
    already installed files and to verify the downloaded ones.
    """

    __slots__ = "url", "dst", "size", "sha1", "name"

    def __init__(self,
        url: str,
        dst: Path, *,
        size: Optional[int] = None,
        sha1: Optional[str] = None,
        name: Optional[str] = None
    ) -> None:
        self.url = url
        self.dst = dst
        self.size = size
        self.sha1 = sha1
        self.name = url if name is None else name

    def __repr__(self) -> str:
        return f"<DownloadEntry {self.name}>"

    def __hash__(self) -> int:
        return hash((self.url, self.dst, self.size, self.sha1))

    def __eq__(self, other):
        return isinstance(other, DownloadEntry) and \
            (self.url, self.dst, self.size, self.sha1) == \
            (other.url, other.dst, other.size, other.sha1)


class DownloadResult:
    """Base class for results yielded by `DownloadList.download`.
    """
    __slots__ = "thread_id", "entry"
    def __init__(self, thread_id: int, entry: DownloadEntry) -> None:
        self.thread_id = thread_id
        self.entry = entry


class DownloadResultProgress(DownloadResult):
    """Progress of a download, the entry is fully downloaded and verified when `done`.
    """
    __slots__ = "size", "speed", "done"
    def __init__(self, thread_id: int, entry: DownloadEntry, size: int, speed: float, done: bool) -> None:
        super().__init__(thread_id, entry)
        self.size = size
        self.speed = speed
        self.done = done


class DownloadResultError(DownloadResult):
    """A download that failed after all tries, with its error code and the original
    error for connection errors.
    """

    CONNECTION = "connection"
    NOT_FOUND = "not_found"
    INVALID_SIZE = "invalid_size"
    INVALID_SHA1 = "invalid_sha1"

    __slots__ = "code", "origin"

    def __init__(self, thread_id: int, entry: DownloadEntry, code: str, origin: Optional[Exception]) -> None:
        super().__init__(thread_id, entry)
        self.code = code
        self.origin = origin


class DownloadList:
    """A list of entries downloaded all at once by a pool of threads.
    """

    __slots__ = "entries", "count", "size"

    def __init__(self):
        self.entries: List[DownloadEntry] = []
        self.count = 0
        self.size = 0

    def clear(self) -> None:
        self.entries.clear()
        self.count = 0
        self.size = 0

    def add(self, entry: DownloadEntry, *, verify: bool = False) -> None:
        """Add a download entry to this list.

        :param entry: The entry to add.
        :param verify: Set to true in order to skip the entry if its file already exists
        with the expected size.
        :raises ValueError: If the URL scheme is not HTTP(S).
        """

        scheme = urllib.parse.urlparse(entry.url).scheme
        if scheme not in ("http", "https"):
            raise ValueError(f"unsupported scheme '{scheme}://' from url {entry.url}")

        if verify and entry.dst.is_file() and (entry.size is None or entry.size == entry.dst.stat().st_size):
            return

        self.entries.append(entry)
        self.count += 1
        if entry.size is not None:
            self.size += entry.size

    def download(self, threads_count: int, *,
        partial_progress: bool = False
    ) -> Iterator[Tuple[int, DownloadResult]]:
        """Execute the download.

        :param threads_count: The number of threads to run the download on.
        :param partial_progress: Set to true to also receive progress of unfinished files.
        :return: An iterator of tuples with the number of finished entries so far and the
        new result.
        """

        # Big files first, unknown sizes are considered 1 MiB.
        self.entries.sort(key=lambda e: e.size or 1048576, reverse=True)

        entries_count = len(self.entries)
        if not entries_count or threads_count < 1:
            return

        entries_queue = Queue()
        result_queue = Queue()

        for th_id in range(threads_count):
            Thread(target=_download_thread_wrapper,
                   args=(th_id, entries_queue, result_queue, partial_progress),
                   daemon=True,
                   name=f"Download Thread {th_id}").start()

        for entry in self.entries:
            entries_queue.put(entry)

        result_count = 0
        crash = None

        try:
            while result_count < entries_count:

                result = result_queue.get()
                if isinstance(result, _DownloadThreadCrash):
                    crash = result
                    break

                if not isinstance(result, DownloadResultProgress) or result.done:
                    result_count += 1

                yield result_count, result

        finally:
            # One sentinel per thread, threads are daemons so they are not joined.
            for _ in range(threads_count):
                entries_queue.put(None)

        if crash is not None:
            raise ValueError(f"unexpected crash from thread {crash.thread_id}", crash.origin)


class DownloadError(Exception):
    """Raised when some entries could not be downloaded, each error is a tuple of the
    entry and the error code.
    """

    def __init__(self, errors: List[Tuple[DownloadEntry, str]]) -> None:
        self.errors = errors

    def __str__(self) -> str:
        return ", ".join(f"{entry.name}: {code}" for entry, code in self.errors)


class _DownloadThreadCrash:
    __slots__ = "thread_id", "origin",
    def __init__(self, thread_id: int, origin: Exception) -> None:
        self.thread_id = thread_id
        self.origin = origin


def _download_thread_wrapper(thread_id: int, entries_queue: Queue, result_queue: Queue, partial_progress: bool) -> None:
    """Ensures that an unexpected error is sent to the master thread instead of leaving
    it waiting forever.
    """
    try:
        _download_thread(thread_id, entries_queue, result_queue, partial_progress)
    except Exception as e:
        result_queue.put(_DownloadThreadCrash(thread_id, e))


def _download_thread(thread_id: int, entries_queue: Queue, result_queue: Queue, partial_progress: bool) -> None:

    ctx = ssl_context()
    headers = {"User-Agent": f"{LAUNCHER_NAME}/{LAUNCHER_VERSION}"}
    buffer_cap = 65536
    max_try_count = 3

    # Exponential smoothing of the download speed.
    speed_smoothing = 0.3
    speed = 0.0

    while True:

        entry: Optional[DownloadEntry] = entries_queue.get()
        if entry is None:
            break

        last_error: Optional[str] = None
        last_origin: Optional[Exception] = None

        for _ in range(max_try_count):

            try:

                req = urllib.request.Request(entry.url, headers=headers)
                with urllib.request.urlopen(req, context=ctx) as res:

                    sha1 = None if entry.sha1 is None else hashlib.sha1()
                    size = 0
                    start_time = time.monotonic()

                    entry.dst.parent.mkdir(parents=True, exist_ok=True)
                    with entry.dst.open("wb") as dst_fp:
                        while True:

                            chunk = res.read(buffer_cap)
                            if not chunk:
                                break

                            size += len(chunk)
                            if sha1 is not None:
                                sha1.update(chunk)
                            dst_fp.write(chunk)

                            elapsed = time.monotonic() - start_time
                            if elapsed > 0:
                                speed = speed_smoothing * (size / elapsed) + (1 - speed_smoothing) * speed

                            if partial_progress and len(chunk) == buffer_cap:
                                result_queue.put(DownloadResultProgress(thread_id, entry, size, speed, False))

                if entry.size is not None and size != entry.size:
                    last_error = DownloadResultError.INVALID_SIZE
                elif sha1 is not None and sha1.hexdigest() != entry.sha1:
                    last_error = DownloadResultError.INVALID_SHA1
                else:
                    result_queue.put(DownloadResultProgress(thread_id, entry, size, speed, True))
                    last_error = None
                    break

            except HTTPError as e:
                last_error = DownloadResultError.NOT_FOUND
                last_origin = e
            except (URLError, HTTPException, OSError) as e:
                last_error = DownloadResultError.CONNECTION
                last_origin = e

            # Only reached when the try failed, partial or invalid files are removed.
            try:
                entry.dst.unlink()
            except FileNotFoundError:
                pass

        if last_error is not None:
            result_queue.put(DownloadResultError(thread_id, entry, last_error, last_origin))
