from .user import User
from .document import Document

__all__ = [
    'User',
    'Document',
]
