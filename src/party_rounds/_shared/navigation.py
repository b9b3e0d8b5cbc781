# Area: Shared
"""
party_rounds._shared.navigation — In-process navigator
======================================================

Navigator that records where a client is and where it has been.
Used by the CLI runner and by tests standing in for a browser router.
"""

import logging
from typing import List, Optional

from ..collaborators import Navigator

logger = logging.getLogger("party_rounds.navigation")


class HistoryNavigator(Navigator):
    """
    Keeps the current location and the navigation history.

    Navigating to the current location is ignored, so a redirect that
    arrives twice only moves the client once.
    """

    def __init__(self, start: Optional[str] = None):
        self._location = start
        self.history: List[str] = [start] if start else []

    @property
    def location(self) -> Optional[str]:
        return self._location

    def navigate_to(self, path: str) -> None:
        if path == self._location:
            logger.debug(f"Already at {path}")
            return
        self._location = path
        self.history.append(path)
        logger.debug(f"Navigated to {path}")
