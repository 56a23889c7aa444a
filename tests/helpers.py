import itertools


class FixedClassifier:
    """Returns the given verdicts in turn, one per checked file."""

    def __init__(self, *verdicts):
        self._verdicts = itertools.cycle(verdicts)
        self.checked = []

    def is_valid(self, path):
        self.checked.append(path)
        return next(self._verdicts)


class FirstChoice:
    """Deterministic stand-in for random.choice."""

    def __init__(self, index=0):
        self.index = index

    def __call__(self, seq):
        return seq[self.index % len(seq)]


def image_part(name="leaf.jpg", size=200 * 1024, content_type="image/jpeg"):
    return ("images", (name, b"\xff" * size, content_type))
