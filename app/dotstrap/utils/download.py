"""HTTP download helper for repository and font archives."""

import logging
import shutil
from pathlib import Path
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from dotstrap import __version__

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 120.0


class DownloadError(RuntimeError):
    """Raised when a download fails."""


def download_file(url: str, dest: Path, *, timeout: float = DOWNLOAD_TIMEOUT) -> Path:
    """Download ``url`` into ``dest``.

    The body is streamed to a sibling ``.part`` file which replaces
    ``dest`` only after the transfer completed.

    Args:
        url: Source URL.
        dest: Destination file path (parent is created).
        timeout: Socket timeout in seconds.

    Returns:
        The destination path.

    Raises:
        DownloadError: On HTTP, network or write failures.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_name(dest.name + ".part")
    request = Request(url, headers={"User-Agent": f"dotstrap/{__version__}"})

    logger.info("Downloading %s -> %s", url, dest)
    try:
        with urlopen(request, timeout=timeout) as response, partial.open("wb") as f:
            shutil.copyfileobj(response, f)
    except HTTPError as e:
        partial.unlink(missing_ok=True)
        msg = f"Download of {url} failed with status {e.code}: {e.reason}"
        raise DownloadError(msg) from e
    except URLError as e:
        partial.unlink(missing_ok=True)
        msg = f"Download of {url} failed: {e.reason}"
        raise DownloadError(msg) from e
    except OSError as e:
        partial.unlink(missing_ok=True)
        msg = f"Download of {url} failed: {e}"
        raise DownloadError(msg) from e

    partial.replace(dest)
    return dest
