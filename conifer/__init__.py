from .config import ClientConfig, __version__
from .client import Client
from .admin import AdminClient
from .index_connection import IndexConnection
from .inference import InferenceService
from . import models
from . import exceptions

__all__ = ["ClientConfig", "Client", "AdminClient", "IndexConnection", "InferenceService", "models", "exceptions", "__version__"]
