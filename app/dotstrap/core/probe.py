"""Symlink capability probe.

On Windows, creating symbolic links needs either an elevated process or
Developer Mode. The probe answers the question empirically instead of
guessing from privileges.
"""

import logging
import os
import tempfile
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


def probe_symlink_capability(scratch_dir: Path | None = None) -> bool:
    """Check whether this process can create directory symlinks.

    Creates a uniquely named temporary directory and tries to link to it
    from a scratch location. Both paths are removed on every outcome.

    Args:
        scratch_dir: Where to create the probe; defaults to the system temp dir.

    Returns:
        True if the symlink could be created, False otherwise. Never raises.
    """
    try:
        with tempfile.TemporaryDirectory(prefix="dotstrap-probe-", dir=scratch_dir) as tmp:
            target = Path(tmp) / "target"
            target.mkdir()
            link = Path(tmp) / f"link-{uuid.uuid4().hex[:8]}"
            try:
                os.symlink(target, link, target_is_directory=True)
            finally:
                if link.is_symlink():
                    link.unlink()
    except (OSError, NotImplementedError) as e:
        logger.debug("Symlink probe failed: %s", e)
        return False
    return True
