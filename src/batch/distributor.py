# src/batch/distributor.py — v1
"""Result distributor — fan group results back out to fragments.

Every distinct input fragment id gets exactly one FragmentResult, in
input order. Repeats of an id already seen are dropped.
Issues are copied per fragment and stamped with ``{fragment_id}-{index}``
so each copy can be accepted or dismissed independently.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from proofline.batch.models import GroupOutcome
from proofline.core.models import Fragment, FragmentResult, Issue, NormalizedGroup
from proofline.core.normalizer import normalize

logger = logging.getLogger(__name__)


def distribute(
    fragments: Iterable[Fragment],
    groups: Mapping[str, NormalizedGroup],
    cache_hits: Mapping[str, list[Issue]],
    outcomes: Mapping[str, GroupOutcome],
) -> list[FragmentResult]:
    """Build per-fragment results from cached and freshly computed groups.

    Args:
        fragments: All fragments of the run, in caller order.
        groups: Grouper output; fragments absent from it were skipped.
        cache_hits: Fresh cache results keyed by normalized text.
        outcomes: Scheduler outcomes keyed by normalized text.

    Returns:
        One FragmentResult per distinct fragment id, in first-seen order.
    """
    results: list[FragmentResult] = []
    seen: set[str] = set()

    for fragment in fragments:
        if fragment.id in seen:
            continue
        seen.add(fragment.id)
        key = normalize(fragment.text)
        group = groups.get(key)
        if group is None or not group.has(fragment.id):
            results.append(
                FragmentResult(fragment_id=fragment.id, normalized_key=key, status="skipped")
            )
            continue

        if key in cache_hits:
            results.append(
                FragmentResult(
                    fragment_id=fragment.id,
                    normalized_key=key,
                    status="cached",
                    issues=_stamp(cache_hits[key], fragment.id),
                )
            )
            continue

        outcome = outcomes.get(key)
        if outcome is None or outcome.failed:
            results.append(
                FragmentResult(
                    fragment_id=fragment.id,
                    normalized_key=key,
                    status="failed",
                    error=outcome.error if outcome else "not analyzed",
                )
            )
            continue

        results.append(
            FragmentResult(
                fragment_id=fragment.id,
                normalized_key=key,
                status="analyzed",
                issues=_stamp(outcome.issues, fragment.id),
            )
        )

    logger.debug("Distributed results to %d fragments", len(results))
    return results


def _stamp(issues: list[Issue], fragment_id: str) -> list[Issue]:
    return [issue.stamped(fragment_id, i) for i, issue in enumerate(issues)]
