# Inkwell API Module
from inkwell.api.router import api_router

__all__ = ["api_router"]
