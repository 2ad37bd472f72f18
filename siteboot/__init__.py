"""Siteboot - Container bootstrap pipeline for a periodically refreshed static site.

Fetches a random remote asset, keeps it fresh on a schedule, forwards the
scheduled task's log to stdout and injects environment variables into the
served document before handing off to the web server.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Re-export main CLI entry point
from .cli import main

__all__ = ["main"]
