"""capshare: share-service plugin runtime for screen-capture exports."""

__version__ = "0.1.0"
