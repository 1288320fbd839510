"""Business logic services."""

from inkwell.services.article import ArticleService, CommentService
from inkwell.services.auth import AuthService, hash_password, verify_password
from inkwell.services.covers import CoverStore
from inkwell.services.revocation import RevocationRegistry
from inkwell.services.tokens import Identity, TokenService
from inkwell.services.user import UserStore

__all__ = [
    "ArticleService",
    "AuthService",
    "CommentService",
    "CoverStore",
    "Identity",
    "RevocationRegistry",
    "TokenService",
    "UserStore",
    "hash_password",
    "verify_password",
]
