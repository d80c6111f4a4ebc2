"""
Z16 Simulator — Image Loader

Reads a flat .bin machine-code image and places it at address 0.
The first instruction of the image is the first instruction executed.
"""

import logging
from pathlib import Path
from typing import Union

from .errors import LoaderFault
from .mem.memory import Memory

log = logging.getLogger(__name__)


def read_image(path: Union[str, Path]) -> bytes:
    """Read an image file, turning OS errors into LoaderFault."""
    path = Path(path)
    try:
        return path.read_bytes()
    except FileNotFoundError:
        raise LoaderFault(path, "file not found") from None
    except IsADirectoryError:
        raise LoaderFault(path, "is a directory") from None
    except OSError as e:
        raise LoaderFault(path, e.strerror or str(e)) from e


def load_image(memory: Memory, path: Union[str, Path], base_addr: int = 0) -> int:
    """Load the image at `path` into memory. Returns bytes loaded."""
    data = read_image(path)
    count = memory.load_binary(data, base_addr)
    log.info("Loaded %d bytes from %s at 0x%04X", count, path, base_addr)
    return count
