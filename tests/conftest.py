import pytest


class FakeClock:
    """Nanosecond clock that only moves when told to."""

    def __init__(self, start: int = 0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, nanoseconds: int) -> None:
        self.now += nanoseconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(start=1_000_000)
