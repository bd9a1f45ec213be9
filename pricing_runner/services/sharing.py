from __future__ import annotations

import logging
from collections.abc import Iterable

from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import SHARING_FAILURE, ErrorRecord
from ..sheets.store import SpreadsheetStore, StoreError

"""Post-processing side effects on the finished results spreadsheet.

Every step is isolated: a failed permission call is logged and recorded,
and the remaining steps still run. Nothing here fails the run.
"""

__all__ = [
    "share_results",
]

logger = logging.getLogger(__name__)


async def share_results(
    store: SpreadsheetStore,
    spreadsheet_id: str,
    emails: Iterable[str],
    *,
    make_public: bool = True,
    public_role: str = "reader",
    error_log: ErrorLogBuffer | None = None,
) -> list[str]:
    """Make the spreadsheet link-readable and invite ``emails`` as editors.

    Returns:
        Addresses that were successfully invited
    """
    def _fail(message: str) -> None:
        logger.error(message)
        if error_log is not None:
            error_log.append(ErrorRecord.create(spreadsheet_id, -1, SHARING_FAILURE, message))

    if make_public:
        try:
            await store.make_public(spreadsheet_id, public_role)
            logger.info("sheet made public (%s): %s", public_role, store.url_for(spreadsheet_id))
        except StoreError as e:
            _fail(f"make public failed: {e}")

    invited: list[str] = []
    for email in emails:
        if "@" not in email:
            logger.warning("skipping invalid email: %s", email)
            continue
        try:
            await store.share_with(spreadsheet_id, email)
        except StoreError as e:
            _fail(f"share with {email} failed: {e}")
            continue
        logger.info("shared with %s", email)
        invited.append(email)
    return invited
