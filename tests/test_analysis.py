import pytest

from crop_api.analysis import (
    CANNED_OUTCOMES,
    REJECTION_PHRASES,
    AnalysisSimulator,
    SizeBasedClassifier,
    delay_ms_for,
)

from .helpers import FirstChoice


def write_file(tmp_path, size, name="sample.jpg"):
    path = tmp_path / name
    path.write_bytes(b"\0" * size)
    return path


@pytest.mark.parametrize(
    "size, expected",
    [
        (10 * 1024, False),
        (50 * 1024 - 1, False),
        (50 * 1024, True),
        (200 * 1024, True),
        (10 * 1024 * 1024, True),
        (10 * 1024 * 1024 + 1, False),
    ],
)
def test_classifier_size_bounds(tmp_path, size, expected):
    classifier = SizeBasedClassifier(draw=lambda: 0.5)
    assert classifier.is_valid(write_file(tmp_path, size)) is expected


def test_classifier_missing_file_is_invalid(tmp_path):
    classifier = SizeBasedClassifier(draw=lambda: 0.99)
    assert classifier.is_valid(tmp_path / "missing.jpg") is False


def test_classifier_random_rejection(tmp_path):
    path = write_file(tmp_path, 100 * 1024)
    assert SizeBasedClassifier(draw=lambda: 0.14).is_valid(path) is False
    assert SizeBasedClassifier(draw=lambda: 0.15).is_valid(path) is True


def test_classifier_draws_once_per_file(tmp_path):
    calls = []

    def draw():
        calls.append(1)
        return 0.9

    classifier = SizeBasedClassifier(draw=draw)
    classifier.is_valid(write_file(tmp_path, 100 * 1024, "a.jpg"))
    classifier.is_valid(write_file(tmp_path, 10, "b.jpg"))
    assert len(calls) == 1


@pytest.mark.parametrize("index", range(len(CANNED_OUTCOMES)))
def test_simulator_valid_pair(index):
    result = AnalysisSimulator(choice=FirstChoice(index)).analyze(True, True)
    outcome = CANNED_OUTCOMES[index]

    assert result.status == outcome["status"]
    assert result.title == outcome["title"]
    assert result.confidence == outcome["confidence"]
    assert [(s.step, s.completed, s.duration) for s in result.processing_steps] == [
        ("Image Recognition", True, 3000),
        ("Crop Detection", True, 4000),
        ("Disease Analysis", True, 8000),
    ]


@pytest.mark.parametrize(
    "valid_a, valid_b, sample",
    [(False, True, 1), (True, False, 2), (False, False, 1)],
)
def test_simulator_invalid(valid_a, valid_b, sample):
    result = AnalysisSimulator(choice=FirstChoice(3)).analyze(valid_a, valid_b)

    assert result.status == "invalid"
    assert result.title == "Invalid Image Detected"
    assert result.message == f"Sample {sample}: {REJECTION_PHRASES[3]}"
    assert result.confidence == 0
    assert result.color == "red"
    assert [(s.step, s.completed, s.duration) for s in result.processing_steps] == [
        ("Image Recognition", True, 3000),
        ("Crop Detection", False, 0),
    ]


def test_simulator_default_choice_stays_in_catalog():
    simulator = AnalysisSimulator()
    statuses = {simulator.analyze(True, True).status for _ in range(50)}
    assert statuses <= {o["status"] for o in CANNED_OUTCOMES}


def test_delay_depends_on_status():
    simulator = AnalysisSimulator(choice=FirstChoice())
    assert delay_ms_for(simulator.analyze(False, True), 15000, 7000) == 7000
    assert delay_ms_for(simulator.analyze(True, True), 15000, 7000) == 15000
