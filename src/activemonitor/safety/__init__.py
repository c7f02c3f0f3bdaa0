"""Reading thresholds and deterministic classification."""

from activemonitor.safety.classifier import ReadingClassifier
from activemonitor.safety.contracts import ReadingAssessment, ReadingLevel, ReadingPolicy, ReadingThreshold

__all__ = ["ReadingAssessment", "ReadingClassifier", "ReadingLevel", "ReadingPolicy", "ReadingThreshold"]
