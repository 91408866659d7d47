"""Enumeration types for repochat data models."""

from enum import Enum, IntEnum


class ChunkSource(str, Enum):
    CODE = "code"
    AI_RESPONSE = "ai_response"


class Vote(IntEnum):
    UP = 1
    DOWN = -1
