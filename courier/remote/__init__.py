__all__ = [
    "CachingGateway",
    "RemoteGateway",
    "RemoteWarning",
    "WebServiceError",
    "raise_for_warnings",
]

from .cache import CachingGateway
from .gateway import raise_for_warnings, RemoteGateway, RemoteWarning, WebServiceError
