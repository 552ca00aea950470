from __future__ import annotations

from psr.core.result import Err, Ok, Result
from psr.services.release_errors import ReviewRejected
from psr.services.store.model import PluginRecord, ReviewRecord


def evaluate_review(plugin: PluginRecord, version: str) -> Result[ReviewRecord, ReviewRejected]:
    """Interpret the newest review of a plugin.

    Only the exact status name "approved" publishes. Anything else, including
    "pending" or a missing review, is a rejection carrying the status and
    comment verbatim.
    """
    review = plugin.latest_review
    if review is None:
        return Err(ReviewRejected(plugin=plugin.name, version=version, status="", comment=""))
    if not review.approved:
        return Err(
            ReviewRejected(
                plugin=plugin.name,
                version=version,
                status=review.status,
                comment=review.comment,
            )
        )
    return Ok(review)
