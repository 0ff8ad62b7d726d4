"""
Share link domain service - capability links over a holder's credentials.

Share Link State Machine
========================

States, evaluated in fixed precedence (first match wins):
    NOT_FOUND             no record for the share id
    REVOKED               is_active is False
    EXPIRED               expiry_date set and expiry_date <= now
    ACCESS_LIMIT_REACHED  max_access_count set and access_count >= max_access_count
    ACTIVE                otherwise

A max_access_count of 0 or None means "no limit".

Only ACTIVE links release credentials. Each successful access increments
access_count through the repository's atomic conditional update; the
count reported back is the post-increment value from that same update.
Denied accesses never increment.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from .clock import utcnow
from .exceptions import GoneExpiredOrLimited, NotFound
from .models import ShareLink, SharedCredentials
from .ports import ShareLinkRepository, ShareState, UserRepository

logger = logging.getLogger(__name__)


def evaluate_share_state(link: ShareLink | None, now: datetime) -> ShareState:
    """Classify a share link at ``now``."""
    if link is None:
        return ShareState.NOT_FOUND
    if not link.is_active:
        return ShareState.REVOKED
    if link.expiry_date is not None and link.expiry_date <= now:
        return ShareState.EXPIRED
    if link.max_access_count and link.access_count >= link.max_access_count:
        return ShareState.ACCESS_LIMIT_REACHED
    return ShareState.ACTIVE


def raise_for_state(state: ShareState) -> None:
    """Raise the caller-facing error for a non-ACTIVE state."""
    if state is ShareState.NOT_FOUND:
        raise NotFound("Shared credential not found", code="SHARE_NOT_FOUND")
    if state is ShareState.REVOKED:
        raise GoneExpiredOrLimited(
            "This shared credential has been revoked", code="SHARE_REVOKED"
        )
    if state is ShareState.EXPIRED:
        raise GoneExpiredOrLimited("This shared credential has expired", code="SHARE_EXPIRED")
    if state is ShareState.ACCESS_LIMIT_REACHED:
        raise GoneExpiredOrLimited(
            "Access limit reached for this shared credential", code="ACCESS_LIMIT_REACHED"
        )


@dataclass
class ShareLinkService:
    """Domain service for reading credentials through share links."""

    share_links: ShareLinkRepository
    users: UserRepository
    clock: Callable[[], datetime] = field(default=utcnow)

    def access_shared_credentials(self, share_id: str) -> SharedCredentials:
        """
        Release the credentials behind an ACTIVE share link.

        Args:
            share_id: Share link identifier

        Returns:
            SharedCredentials with the filtered credentials and the link
            state after this access was counted

        Raises:
            NotFound: no such link (SHARE_NOT_FOUND), or none of its
                credentials exist any more (NO_CREDENTIALS_FOUND)
            GoneExpiredOrLimited: link revoked, expired or out of accesses
        """
        now = self.clock()
        link = self.share_links.get(share_id)
        state = evaluate_share_state(link, now)
        raise_for_state(state)

        wanted = set(link.credential_ids)
        credentials = [c for c in self.users.list_credentials(link.owner) if c.local_id in wanted]
        if not credentials:
            logger.warning("Share link %s references no existing credentials", share_id)
            raise NotFound(
                "No valid credentials found for this share", code="NO_CREDENTIALS_FOUND"
            )

        updated = self.share_links.record_access(share_id, now)
        if updated is None:
            # Link changed between the read and the increment (revoked or limit hit)
            raise_for_state(evaluate_share_state(self.share_links.get(share_id), now))
            raise GoneExpiredOrLimited("Shared credential is no longer available")

        return SharedCredentials(link=updated, credentials=credentials)
