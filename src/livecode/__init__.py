"""livecode: room session coordinator for a collaborative code editor."""
import importlib.metadata
import logging

log = logging.getLogger(__name__)

__version__ = importlib.metadata.version("livecode")
