"""Global git config include patch.

The repository ships its git settings under ``.config/git``. The global
``~/.gitconfig`` gets an include block pointing at the linked copy; the
block is appended once and recognised by its marker on later runs.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

INCLUDE_MARKER = "# dotstrap: managed include"


def _include_line(include_path: Path) -> str:
    # git accepts forward slashes on every platform
    return f"path = {include_path.as_posix()}"


def render_include_block(include_path: Path) -> str:
    """Render the include block appended to the global git config."""
    return f"{INCLUDE_MARKER}\n[include]\n\t{_include_line(include_path)}\n"


def has_include(text: str, include_path: Path) -> bool:
    """Check if a git config already includes ``include_path``."""
    wanted = _include_line(include_path).replace(" ", "")
    return any(line.strip().replace(" ", "") == wanted for line in text.splitlines())


def ensure_git_include(gitconfig: Path, include_path: Path, *, dry_run: bool = False) -> bool:
    """Append the include block unless the file already has it.

    Args:
        gitconfig: Global git config file (created if missing).
        include_path: Config file the include should point at.
        dry_run: Only report whether a change would be made.

    Returns:
        True if the file was (or would be) changed.
    """
    text = gitconfig.read_text(encoding="utf-8") if gitconfig.exists() else ""
    if has_include(text, include_path):
        logger.debug("%s already includes %s", gitconfig, include_path)
        return False

    if dry_run:
        return True

    separator = "" if not text or text.endswith("\n") else "\n"
    gitconfig.parent.mkdir(parents=True, exist_ok=True)
    with gitconfig.open("a", encoding="utf-8", newline="\n") as f:
        f.write(separator + render_include_block(include_path))
    logger.info("Added include of %s to %s", include_path, gitconfig)
    return True


def remove_git_include(gitconfig: Path, *, dry_run: bool = False) -> bool:
    """Strip the managed include block, leaving user content alone.

    Only the three lines following the marker are removed, and only when
    they are exactly the block ``ensure_git_include`` writes.

    Returns:
        True if the file was (or would be) changed.
    """
    if not gitconfig.exists():
        return False

    lines = gitconfig.read_text(encoding="utf-8").splitlines(keepends=True)
    kept: list[str] = []
    removed = False
    index = 0
    while index < len(lines):
        block = lines[index : index + 3]
        if (
            len(block) == 3
            and block[0].strip() == INCLUDE_MARKER
            and block[1].strip() == "[include]"
            and block[2].strip().startswith("path =")
        ):
            removed = True
            index += 3
            continue
        kept.append(lines[index])
        index += 1

    if removed and not dry_run:
        gitconfig.write_text("".join(kept), encoding="utf-8")
        logger.info("Removed managed include from %s", gitconfig)
    return removed
