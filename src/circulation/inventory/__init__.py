"""Book inventory module.

Provides functionality for:
- Adding, updating and deleting catalog entries
- Adjusting available copies as loans open and close
- Searching and sorting the catalog
"""

from .manager import FIRST_BOOK_ID, BookInventory
from .schemas import Book, BookCreate, BookUpdate, SortField
from .store import BookCodec, BookMapper

__all__ = [
    "FIRST_BOOK_ID",
    "BookInventory",
    "Book",
    "BookCreate",
    "BookUpdate",
    "SortField",
    "BookCodec",
    "BookMapper",
]
