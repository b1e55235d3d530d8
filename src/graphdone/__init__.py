"""graphdone: graph hierarchy, permission and sync core for GraphDone clients."""

__version__ = "0.1.0"
