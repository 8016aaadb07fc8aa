"""
Services layer for the StudyMaster application
"""

from .progress_service import ProgressService
from .session_recorder import SessionRecorder
from .analytics_service import AnalyticsService
from .content_generation import ContentGenerator
