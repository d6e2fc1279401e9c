from __future__ import annotations

import logging
from typing import List

_log = logging.getLogger(__name__)

CHUNK_DELIMITER = "."


def generate_chunks(text: str) -> List[str]:
    """
    Split resource text into chunks on every period.

    The input is trimmed once; interior segments are kept verbatim (a chunk
    may start with a space) and only segments that are exactly empty are
    dropped. Abbreviations, decimals and quoted periods are split like any
    other period.
    """
    chunks = [segment for segment in text.strip().split(CHUNK_DELIMITER) if segment != ""]
    _log.debug("Split %d characters into %d chunks", len(text), len(chunks))
    return chunks


__all__ = ["generate_chunks", "CHUNK_DELIMITER"]
