# circle_board/gateway/realtime.py
"""
コレクションの変更通知（INSERT / UPDATE / DELETE）。

書き込みと同じスレッドで購読者のコールバックを順に呼ぶだけの簡易版。
購読者側で例外が出てもログに残して次の購読者へ進む。
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

ALL_TABLES = "*"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str  # 'INSERT' / 'UPDATE' / 'DELETE'
    row: dict[str, Any] = field(default_factory=dict)


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    def __init__(self, feed: "ChangeFeed", table: str, callback: ChangeCallback):
        self._feed = feed
        self.table = table
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._feed._remove(self)
            self.active = False


class ChangeFeed:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        """table に "*" を渡すと全コレクションの変更を受け取る"""
        sub = Subscription(self, table, callback)
        with self._lock:
            self._subscriptions.append(sub)
        logger.debug("subscribed to %s", table)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = [
                s for s in self._subscriptions
                if s.table in (ALL_TABLES, event.table)
            ]
        for sub in targets:
            try:
                sub.callback(event)
            except Exception:
                logger.exception(
                    "change callback failed (table=%s, event=%s)",
                    event.table,
                    event.event,
                )

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)


# アプリ全体で共有する変更通知
change_feed = ChangeFeed()
