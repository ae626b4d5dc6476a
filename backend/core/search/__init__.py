from .enhanced_search import EnhancedSearchService, empty_search_result, filter_by_nutrition_grade

__all__ = ["EnhancedSearchService", "empty_search_result", "filter_by_nutrition_grade"]
