"""Installed version of txsubmitter."""
import importlib.metadata

try:
    __version__ = importlib.metadata.version("txsubmitter")
except importlib.metadata.PackageNotFoundError:
    # running from a source tree that was never installed
    __version__ = "0.0.0"
