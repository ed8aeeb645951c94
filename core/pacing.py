"""Inter-item pacing for the sequential upstream loops"""
import time
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Iterator, TypeVar

T = TypeVar("T")


class DelayPolicy(ABC):
    """Decides how long to wait after each processed item"""

    @abstractmethod
    def wait(self) -> None:
        pass


class FixedDelay(DelayPolicy):
    """Constant pause after every item"""

    def __init__(self, seconds: float, sleep: Callable[[float], None] = time.sleep):
        self.seconds = max(0.0, seconds)
        self._sleep = sleep

    def wait(self) -> None:
        if self.seconds > 0:
            self._sleep(self.seconds)


class NoDelay(DelayPolicy):
    def wait(self) -> None:
        return None


def paced(items: Iterable[T], policy: DelayPolicy) -> Iterator[T]:
    """Yield items one at a time, applying the policy after each one is handled.

    The pause runs when the consumer asks for the next item, so it follows every
    item (the last one included) whether the consumer's body succeeded or
    caught an error.
    """
    for item in items:
        yield item
        policy.wait()
