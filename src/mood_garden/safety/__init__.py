"""Safety escalation: trigger detection, the level state machine and interventions."""

from mood_garden.safety.interventions import GROUNDING_FALLBACK, SupportPlan, support_plan
from mood_garden.safety.monitor import SafetyMonitor
from mood_garden.safety.triggers import detect_physiological_triggers, detect_text_triggers

__all__ = [
    "GROUNDING_FALLBACK",
    "SafetyMonitor",
    "SupportPlan",
    "detect_physiological_triggers",
    "detect_text_triggers",
    "support_plan",
]
