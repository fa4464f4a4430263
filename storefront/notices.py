"""Transient messages shown to the person using a storefront session."""

import logging
from typing import List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Notice(BaseModel):
    message: str
    is_error: bool = False


class NoticeBoard:
    def __init__(self):
        self.history: List[Notice] = []

    def post(self, message: str, is_error: bool = False) -> Notice:
        notice = Notice(message=message, is_error=is_error)
        self.history.append(notice)
        if is_error:
            logger.warning("Notice: %s", message)
        else:
            logger.info("Notice: %s", message)
        return notice

    @property
    def latest(self) -> Optional[Notice]:
        return self.history[-1] if self.history else None

    def clear(self):
        self.history.clear()
