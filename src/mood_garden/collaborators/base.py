"""Abstract contracts for the external collaborators feeding the engine.

Sentiment scoring, speech transcription and wearable sampling all happen
outside the engine.  Implementations return already-resolved data that
the helpers below turn into raw inputs for the normaliser.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from pydantic import BaseModel, Field

from mood_garden.models import BiometricInput, TextInput, VocalFeatures, VoiceInput


class SentimentResult(BaseModel):
    """Emotion scores for a piece of text, as returned by a classifier."""

    emotions: dict[str, float] = Field(default_factory=dict)
    confidence: float = 0.0


class Transcription(BaseModel):
    transcript: str
    vocal_features: VocalFeatures = Field(default_factory=VocalFeatures)


class TextSentimentClassifier(ABC):
    """Scores free text against the eight canonical emotions."""

    @abstractmethod
    async def analyze(self, text: str) -> SentimentResult:
        """Return per-emotion scores for *text*."""


class VoiceTranscriber(ABC):
    """Turns recorded audio into a transcript plus prosodic features."""

    @abstractmethod
    async def transcribe(self, audio: bytes) -> Transcription:
        """Transcribe *audio*."""


class BiometricStream(ABC):
    """Pull-based source of physiological readings from a wearable."""

    @abstractmethod
    async def sample(self) -> BiometricInput:
        """Return the most recent raw reading."""

    async def stream(self, count: int) -> AsyncIterator[BiometricInput]:
        """Yield *count* consecutive samples.

        Devices that support real-time push can override this.
        """
        for _ in range(count):
            yield await self.sample()

    async def close(self) -> None:
        """Release any resources held by the stream."""


# ── Input builders ────────────────────────────────────────────


async def text_input(classifier: TextSentimentClassifier, text: str) -> TextInput:
    """Score *text* with *classifier* and wrap it as a :class:`TextInput`."""
    result = await classifier.analyze(text)
    return TextInput(text=text, emotions=result.emotions)


async def voice_input(
    transcriber: VoiceTranscriber,
    classifier: TextSentimentClassifier,
    audio: bytes,
) -> VoiceInput:
    """Transcribe *audio*, score the transcript and wrap both as a :class:`VoiceInput`."""
    transcription = await transcriber.transcribe(audio)
    result = await classifier.analyze(transcription.transcript)
    return VoiceInput(
        transcript=transcription.transcript,
        vocal_features=transcription.vocal_features,
        emotions=result.emotions,
    )
