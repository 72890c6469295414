"""Visit-count gate for public gallery views."""

import logging
from dataclasses import dataclass, field, replace

from selectify.domain.errors import ForbiddenError, NotFoundError
from selectify.domain.models import PhotoLinkRecord
from selectify.services.gallery import PhotoLinkRepository
from selectify.services.retry import RetryPolicy

DEFAULT_VISIT_THRESHOLD = 2

logger = logging.getLogger(__name__)


@dataclass
class AccessGate:
    """Allows a public view while ``visit_count`` has not passed the threshold.

    With the default threshold of 2 a link can be viewed three times
    (counts 0, 1 and 2); the fourth view is refused.
    """

    link_repository: PhotoLinkRepository
    threshold: int = DEFAULT_VISIT_THRESHOLD
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)

    async def check_and_record_visit(self, unique_id: str) -> PhotoLinkRecord:
        """Record a visit and return the link, or raise when refused."""
        link = await self.retry_policy.call(
            lambda: self.link_repository.get_link(unique_id),
            description="get_link",
        )
        if link is None:
            raise NotFoundError("Link not found")
        # Not retried: a lost response could otherwise count a visit twice.
        allowed = (
            link.visit_count <= self.threshold
            and await self.link_repository.increment_visit_if_at_most(
                unique_id, self.threshold
            )
        )
        if not allowed:
            logger.info("Visit refused", extra={"unique_id": unique_id})
            raise ForbiddenError()
        return replace(link, visit_count=link.visit_count + 1)
