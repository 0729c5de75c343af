"""
story_loader.py  – finds and decodes the images that make up a story reel

Stories are the image files directly inside one folder, shown in natural
sort order (image2 before image10).
"""
from __future__ import annotations

import logging
import os
import re
import typing as _t
from dataclasses import dataclass, field

import numpy as np
from PIL import Image

import config

logger = logging.getLogger(__name__)

_IMAGE_RE = re.compile(r"\.(?:png|jpe?g|gif|bmp|webp)$", re.IGNORECASE)


# ---------- natural sort --------------------------------------------------
def _nat_key(s: str) -> list[_t.Union[int, str]]:
    return [int(t) if t.isdigit() else t.lower()
            for t in re.split(r"(\d+)", s)]


# ---------- discovery -----------------------------------------------------
def discover(root: str) -> list[str]:
    """Image paths directly under *root*, natural-sorted; [] if missing."""
    if not os.path.isdir(root):
        logger.warning("story folder %s does not exist", root)
        return []
    names = [e.name for e in os.scandir(root)
             if e.is_file() and _IMAGE_RE.search(e.name)]
    names.sort(key=_nat_key)
    return [os.path.join(root, n) for n in names]


# ---------- decode --------------------------------------------------------
def load_frame(fp: str) -> np.ndarray:
    """Decode one image to an HxWx3 uint8 RGB array."""
    with Image.open(fp) as im:
        return np.asarray(im.convert("RGB"), dtype=np.uint8)


@dataclass
class StoryFolder:
    root: str
    files: list[str] = field(default_factory=list)
    frames: list[np.ndarray] = field(default_factory=list)

    @classmethod
    def load(cls, root: str | None = None) -> "StoryFolder":
        root = os.path.abspath(root or config.STORIES_PATH)
        files, frames = [], []
        for fp in discover(root):
            try:
                frames.append(load_frame(fp))
            except Exception:
                logger.warning("skipping unreadable image %s", fp, exc_info=True)
                continue
            files.append(fp)
        logger.info("loaded %d stories from %s", len(files), root)
        return cls(root=root, files=files, frames=frames)

    def __len__(self) -> int:
        return len(self.files)
