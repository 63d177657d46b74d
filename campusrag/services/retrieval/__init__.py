"""Query-time services: classification, dual-channel retrieval, context formatting, chat."""

from campusrag.services.retrieval.chat_service import ChatService
from campusrag.services.retrieval.query_classifier import classify
from campusrag.services.retrieval.retrieval_blender import RetrievalBlender

__all__ = [
    "ChatService",
    "RetrievalBlender",
    "classify",
]
