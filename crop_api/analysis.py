import random
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

from .schemas import DetectionResult, ProcessingStep


CANNED_OUTCOMES: List[Dict[str, Any]] = [
    {
        "status": "healthy",
        "title": "Healthy",
        "message": "No disease detected. All crop samples appear normal and healthy.",
        "confidence": 95,
        "color": "green",
    },
    {
        "status": "warning",
        "title": "Possible Disease Detected",
        "message": "Early signs of fungal infection detected. Recommend treatment intervention.",
        "confidence": 78,
        "color": "yellow",
    },
    {
        "status": "critical",
        "title": "Critical Disease Identified",
        "message": "Severe disease markers detected. Immediate treatment recommended.",
        "confidence": 88,
        "color": "red",
    },
    {
        "status": "mild",
        "title": "Minor Disease Indicators",
        "message": "Mild disease patterns detected. Monitor for progression.",
        "confidence": 72,
        "color": "blue",
    },
    {
        "status": "moderate",
        "title": "Moderate Risk Detected",
        "message": "Moderate disease indicators present. Recommend specialist consultation.",
        "confidence": 81,
        "color": "orange",
    },
]

REJECTION_PHRASES = [
    "Image quality too low for analysis",
    "Image appears to be synthetic or corrupted",
    "Unable to detect crop features in image",
    "Image dimensions incompatible with analysis model",
]

VALID_STEPS = [
    ("Image Recognition", True, 3000),
    ("Crop Detection", True, 4000),
    ("Disease Analysis", True, 8000),
]

INVALID_STEPS = [
    ("Image Recognition", True, 3000),
    ("Crop Detection", False, 0),
]


def _steps(rows: Sequence[tuple]) -> List[ProcessingStep]:
    return [ProcessingStep(step=name, completed=done, duration=ms) for name, done, ms in rows]


class SizeBasedClassifier:
    """
    Decides whether a stored image is a usable crop sample.

    Files outside [min_bytes, max_bytes] or unreadable are rejected outright;
    the rest are rejected with probability ``invalid_chance``. ``draw`` returns
    a float in [0, 1) and can be replaced for deterministic runs.
    """

    def __init__(
        self,
        min_bytes: int = 50 * 1024,
        max_bytes: int = 10 * 1024 * 1024,
        invalid_chance: float = 0.15,
        draw: Callable[[], float] = random.random,
    ):
        self.min_bytes = min_bytes
        self.max_bytes = max_bytes
        self.invalid_chance = invalid_chance
        self.draw = draw

    def is_valid(self, path: Path) -> bool:
        try:
            size = Path(path).stat().st_size
        except OSError:
            return False

        if size < self.min_bytes or size > self.max_bytes:
            return False

        return self.draw() >= self.invalid_chance


class AnalysisSimulator:
    """Picks a canned diagnosis, or a rejection when either sample is invalid."""

    def __init__(self, choice: Callable[[Sequence[Any]], Any] = random.choice):
        self.choice = choice

    def analyze(self, valid_a: bool, valid_b: bool) -> DetectionResult:
        if not valid_a or not valid_b:
            # sample 1 wins when both are bad
            sample = 1 if not valid_a else 2
            return DetectionResult(
                status="invalid",
                title="Invalid Image Detected",
                message=f"Sample {sample}: {self.choice(REJECTION_PHRASES)}",
                confidence=0,
                color="red",
                processing_steps=_steps(INVALID_STEPS),
            )

        outcome = self.choice(CANNED_OUTCOMES)
        return DetectionResult(**outcome, processing_steps=_steps(VALID_STEPS))


def delay_ms_for(result: DetectionResult, valid_delay_ms: int, invalid_delay_ms: int) -> int:
    return invalid_delay_ms if result.status == "invalid" else valid_delay_ms
