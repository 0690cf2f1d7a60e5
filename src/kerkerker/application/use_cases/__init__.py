from .search_stream import FanOutSession, SearchStreamUseCase
from .shorts_browse import ShortsBrowseUseCase, ShortsPage
from .source_admin import (
    CatalogBundle,
    ImportReport,
    RegistryView,
    SourceAdminUseCase,
)

__all__ = [
    "CatalogBundle",
    "FanOutSession",
    "ImportReport",
    "RegistryView",
    "SearchStreamUseCase",
    "ShortsBrowseUseCase",
    "ShortsPage",
    "SourceAdminUseCase",
]
