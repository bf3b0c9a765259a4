"""
Category routing for lead forwarding.

Exactly two destinations exist. A closed allow-list of WhatsApp categories
goes to the WhatsApp API; every other category, empty included, goes to
the marketing API.
"""
import enum
import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


class Destination(str, enum.Enum):
    MARKETING = 'marketing'
    WHATSAPP = 'whatsapp'


class CategoryRouter:
    """Maps a lead category to a forwarding Destination."""

    def __init__(self, whatsapp_categories: Iterable[str]):
        self.whatsapp_categories = frozenset(c.strip() for c in whatsapp_categories)

    def select(self, category: Optional[str]) -> Destination:
        if not category:
            logger.warning("No category provided, defaulting to marketing API")
            return Destination.MARKETING

        normalized = category.strip()
        if normalized in self.whatsapp_categories:
            logger.info(f"Category '{normalized}' mapped to WhatsApp API")
            return Destination.WHATSAPP

        logger.info(f"Category '{normalized}' mapped to Marketing API")
        return Destination.MARKETING
