# Inkwell Models
from inkwell.models.article import Article
from inkwell.models.base import BaseModel
from inkwell.models.comment import Comment
from inkwell.models.user import User

__all__ = [
    "Article",
    "BaseModel",
    "Comment",
    "User",
]
