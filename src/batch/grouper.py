# src/batch/grouper.py — v1
"""Group fragments by normalized text.

Each analyzable fragment lands in exactly one group; non-analyzable
fragments are left out. The first fragment seen for a key provides the
group's representative text. A fragment id repeated later in the input
keeps its first placement; the repeat is ignored.
"""

from __future__ import annotations

import logging
from typing import Iterable

from proofline.core.models import Fragment, NormalizedGroup
from proofline.core.normalizer import (
    DEFAULT_MIN_LENGTH,
    DEFAULT_SYMBOLIC_MIN_LENGTH,
    is_analyzable,
    normalize,
)

logger = logging.getLogger(__name__)


def group_fragments(
    fragments: Iterable[Fragment],
    min_length: int = DEFAULT_MIN_LENGTH,
    symbolic_min_length: int = DEFAULT_SYMBOLIC_MIN_LENGTH,
) -> dict[str, NormalizedGroup]:
    """Partition fragments into groups keyed by normalized text.

    Returns:
        Insertion-ordered mapping normalized_key → NormalizedGroup.
    """
    groups: dict[str, NormalizedGroup] = {}
    seen: set[str] = set()
    total = 0
    skipped = 0

    for fragment in fragments:
        total += 1
        if fragment.id in seen:
            logger.debug("Ignoring repeated fragment id %r", fragment.id)
            continue
        seen.add(fragment.id)
        if not is_analyzable(fragment.text, min_length, symbolic_min_length):
            skipped += 1
            continue

        key = normalize(fragment.text)
        group = groups.get(key)
        if group is None:
            group = NormalizedGroup(
                normalized_key=key,
                representative_text=fragment.text,
            )
            groups[key] = group
        group.add(fragment.id)

    logger.info(
        "Grouped %d fragments into %d groups (%d skipped)",
        total, len(groups), skipped,
    )
    return groups
