"""extimpact: measure the page-load cost of each extension of a browser application."""

__version__ = "0.1.0"
