from .category import Category
from .commands import (
    DateRange,
    InteractionCommand,
    ManualSearchFilters,
    ManualSearchQuery,
    ManualSearchResult,
    PreferencesQuery,
    PreferencesUpdate,
    RecommendationsQuery,
    SearchQuery,
    SimilarQuery,
    TrendingQuery,
)
from .content import ContentEvent, ContentRecord, ContentStatus, ContentType
from .user_preference import UserPreference

__all__ = [
    'Category',
    'ContentEvent',
    'ContentRecord',
    'ContentStatus',
    'ContentType',
    'DateRange',
    'InteractionCommand',
    'ManualSearchFilters',
    'ManualSearchQuery',
    'ManualSearchResult',
    'PreferencesQuery',
    'PreferencesUpdate',
    'RecommendationsQuery',
    'SearchQuery',
    'SimilarQuery',
    'TrendingQuery',
    'UserPreference',
]
