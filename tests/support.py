"""Deterministic stand-ins for the random source and the clock."""


class ScriptedRandom:
    """Returns the given values in order; fails loudly once they run out."""

    def __init__(self, *values, default=None):
        self.values = list(values)
        self.default = default
        self.calls = 0

    def push(self, *values):
        self.values.extend(values)

    def random(self):
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        if self.default is None:
            raise AssertionError("ScriptedRandom ran out of values")
        return self.default


class FakeClock:
    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now
