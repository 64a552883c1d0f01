"""Remote service clients for Voicelog."""

from voicelog.clients.analysis import LLMAnalysisClient
from voicelog.clients.base import AnalysisClient, TranscriptionClient
from voicelog.clients.transcription import OpenAITranscriptionClient

__all__ = [
    "AnalysisClient",
    "LLMAnalysisClient",
    "OpenAITranscriptionClient",
    "TranscriptionClient",
]
