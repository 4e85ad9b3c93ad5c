"""
Navigation seam: where the client sends the user for login / logout

The browser build swaps the location; the desktop default opens the system
browser. Tests inject a recording fake.
"""

import webbrowser
from typing import Protocol

import structlog

log = structlog.get_logger()


class Navigator(Protocol):
    def open(self, url: str) -> None:
        """Send the user to url (identity provider redirect)"""
        ...

    def replace_location(self, url: str) -> None:
        """Replace the visible location without a new history entry"""
        ...


class BrowserNavigator:
    """Opens identity provider pages in the system browser"""

    def open(self, url: str) -> None:
        log.info("Opening browser", url=url.split("?", 1)[0])
        webbrowser.open(url)

    def replace_location(self, url: str) -> None:
        # no address bar to clean up outside a browser
        log.debug("Location replaced", url=url)
