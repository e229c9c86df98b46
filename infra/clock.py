from time import monotonic, time
from domain.ports import Clock

# epoch seconds (float) + relógio monotônico para idades
class SystemClock(Clock):
    def now_epoch(self) -> float:
        return time()

    def monotonic(self) -> float:
        return monotonic()
