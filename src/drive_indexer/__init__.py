"""Drive indexer — resumable OneDrive folder index written to an Excel worksheet."""

__version__ = "0.1.0"
