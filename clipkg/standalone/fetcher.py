# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime binaries for standalone archives.

Where the bytes come from depends on the target:
  - target == host: straight from the local SDK's bin/ directory. The AOT
    runtime for native builds, the regular runtime for portable ones.
  - any other target: downloaded from the remote SDK store as a zip, from
    which exactly one `<...>/bin/<runtime><ext>` entry is extracted.

In offline mode the download is replaced by a short placeholder payload. That
mode has to be switched on explicitly (standalone.offline); it's for tests.

Each fetcher memoizes results per (channel, version, target), so one build
downloads each target's SDK once no matter how many threads ask for it.
"""

import io
import logging
import threading
import zipfile
from typing import Optional

import httpx

from clipkg.errors import DownloadError
from clipkg.logging.logger import get_logger
from clipkg.platforms.triple import Platform
from clipkg.standalone.strategy import should_build_native
from clipkg.toolchain.sdk import Toolchain

_logger: logging.Logger = get_logger(__name__)

# Error bodies can be whole HTML pages; keep messages readable.
_MAX_ERROR_BODY_CHARS = 500

_CacheKey = tuple[str, str, Platform]


def placeholder_runtime(target: Platform) -> bytes:
    """The stand-in runtime used in offline mode."""
    return f"Runtime {target.os} {target.arch}".encode("utf-8")


def extract_runtime(archive: bytes, runtime_name: str, url: str) -> bytes:
    """
    Pull the single runtime binary out of an SDK zip.

    Raises:
        DownloadError: If the zip is malformed or doesn't hold exactly one
            matching entry.
    """
    suffix = f"/bin/{runtime_name}"
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            matches = [
                info for info in zf.infolist()
                if not info.is_dir() and info.filename.endswith(suffix)
            ]
            if len(matches) != 1:
                raise DownloadError(
                    f"Expected exactly one entry ending in {suffix} in {url}, found {len(matches)}"
                )
            return zf.read(matches[0])
    except zipfile.BadZipFile as err:
        raise DownloadError(f"Malformed zip archive from {url}: {err}") from err


class ArtifactFetcher:
    """
    Supplies the runtime binary for each target of one build invocation.

    Pass `client` to reuse (or mock) an httpx.Client; otherwise one is created
    per download.
    """

    def __init__(
        self,
        toolchain: Toolchain,
        *,
        offline: bool = False,
        client: Optional[httpx.Client] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.toolchain = toolchain
        self.offline = offline
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._lock = threading.Lock()
        self._key_locks: dict[_CacheKey, threading.Lock] = {}
        self._cache: dict[_CacheKey, bytes] = {}
        self.download_count = 0

    def runtime_binary(self, target: Platform, host: Platform) -> bytes:
        """
        The runtime binary to bundle for `target`.

        Raises:
            DownloadError: On a non-2xx response or a malformed SDK archive.
            OSError: If the local SDK's runtime can't be read.
        """
        if target == host:
            return self._read_local(target, host)

        key: _CacheKey = (self.toolchain.channel.value, self.toolchain.version, target)
        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        # Per-key lock: a second thread asking for the same target waits for
        # the first download instead of starting its own.
        with key_lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached
            data = placeholder_runtime(target) if self.offline else self._download(target)
            self._cache[key] = data
            return data

    def _read_local(self, target: Platform, host: Platform) -> bytes:
        executable = (
            self.toolchain.aot_runtime_executable
            if should_build_native(target, host)
            else self.toolchain.runtime_executable
        )
        path = self.toolchain.bin_path(executable, host)
        _logger.debug("Reading local runtime", extra={"target": str(target), "path": str(path)})
        return path.read_bytes()

    def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return self._client.get(url)
        with httpx.Client(timeout=self._timeout_seconds, follow_redirects=True) as client:
            return client.get(url)

    def _download(self, target: Platform) -> bytes:
        url = self.toolchain.archive_url_for(target)
        _logger.info("Downloading runtime", extra={"target": str(target), "url": url})

        try:
            response = self._get(url)
        except httpx.HTTPError as err:
            raise DownloadError(f"Failed to download {url}: {err}") from err

        if not response.is_success:
            raise DownloadError(
                f"Failed to download {url}: {response.status_code} "
                f"{response.text[:_MAX_ERROR_BODY_CHARS]}"
            )

        with self._lock:
            self.download_count += 1

        runtime_name = f"{self.toolchain.runtime_executable}{target.binary_extension}"
        data = extract_runtime(response.content, runtime_name, url)
        _logger.info(
            "Downloaded runtime",
            extra={"target": str(target), "bytes": len(data)},
        )
        return data
