# Database package: table access over DatabaseService
from .progress import ProgressDatabase
from .study_history import HistoryDatabase

__all__ = ["ProgressDatabase", "HistoryDatabase"]
