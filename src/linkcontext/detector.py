"""URL detection in free text.

Syntax only: any ``http://`` or ``https://`` prefix followed by a run of
non-whitespace characters counts as a link. Nothing is fetched or resolved.
"""

from __future__ import annotations

import re

from linkcontext.models.document import DetectedLink

_URL_RE = re.compile(r"https?://\S+")


def detect_links(text: str) -> list[DetectedLink]:
    """Return every URL in *text* in order of appearance, duplicates included."""
    return [DetectedLink(url=m.group(0), position=m.start()) for m in _URL_RE.finditer(text)]
