from .cached_query import CachedSourceQuery
from .httpx_query import DEFAULT_USER_AGENT, HttpxSourceQuery
from .maccms import MAPPERS, MacCmsJsonMapper

__all__ = [
    "DEFAULT_USER_AGENT",
    "MAPPERS",
    "CachedSourceQuery",
    "HttpxSourceQuery",
    "MacCmsJsonMapper",
]
