"""Combat damage simulation service: table lookups, an event queue, macro compilation and an HTTP task server."""

__version__ = "1.3.5"