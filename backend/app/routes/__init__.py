# API routers
from .progress import router as progress_router

__all__ = ["progress_router"]
