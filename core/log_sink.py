import logging
import threading
from collections import deque
from datetime import datetime
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class LogSink:
    """Append-only, timestamped progress log shown to the user.

    Lines live in memory only and go away on clear() or with the session.
    With `max_lines` set, the oldest lines are dropped past that count.
    """

    def __init__(self, max_lines: Optional[int] = None, clock: Callable[[], datetime] = datetime.now):
        self._lines = deque(maxlen=max_lines)
        self._lock = threading.Lock()
        self._clock = clock

    def append(self, text: str) -> str:
        line = f"[{self._clock().strftime('%H:%M:%S')}] {text}"
        with self._lock:
            self._lines.append(line)
        logger.debug(line)
        return line

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    @property
    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)
