"""Fragment image export: one cropped PNG per useful fragment.

Files land under ``<output_dir>/<state name stem>/<fragment id>.png``.  This
is a diagnostic artifact only; nothing reads the files back.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from PIL import Image

    from pagestate.fragments.fragment import FragmentTree

logger = logging.getLogger(__name__)

__all__ = ["export_fragments"]


def export_fragments(
    tree: FragmentTree,
    state_name: str,
    output_dir: str | Path,
    viewport: Image.Image,
) -> list[Path]:
    """Crop every useful fragment out of ``viewport`` and save it as PNG.

    Returns the written paths.  Nothing is written when ``output_dir`` is not
    an existing directory; a fragment that cannot be cropped is logged and
    skipped.
    """
    output_dir = Path(output_dir)
    if not output_dir.is_dir():
        logger.error("Export directory %s does not exist", output_dir)
        return []

    target = output_dir / Path(state_name).stem
    target.mkdir(exist_ok=True)
    written: list[Path] = []
    for fragment in tree.useful_fragments():
        if fragment.rect is None:
            continue
        path = target / f"{fragment.id}.png"
        try:
            viewport.crop(fragment.rect.crop_box()).save(path)
        except (OSError, ValueError):
            logger.error(
                "Could not export fragment %d to %s", fragment.id, path, exc_info=True
            )
            continue
        written.append(path)
    return written
