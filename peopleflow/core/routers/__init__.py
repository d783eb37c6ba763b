from .filter import filter_items as filter
from .results import to_api_response

__all__ = ["filter", "to_api_response"]
