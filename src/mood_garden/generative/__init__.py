"""Deterministic mapping from fused mood to generative garden parameters."""

from mood_garden.generative.companions import Archetype, UserPreferences
from mood_garden.generative.mapper import GenerativeParameters, ParameterMapper

__all__ = ["Archetype", "GenerativeParameters", "ParameterMapper", "UserPreferences"]
