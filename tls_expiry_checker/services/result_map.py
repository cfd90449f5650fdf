"""
并发安全的结果映射
"""
import threading
from typing import Dict, Optional

from ..models import ProbeResult


class ConcurrentResultMap:
    """域名到探测结果的映射，所有读写都持有同一把锁"""

    def __init__(self):
        self._results: Dict[str, ProbeResult] = {}
        self._lock = threading.Lock()

    def insert(self, domain: str, result: ProbeResult) -> None:
        """写入结果，同一域名后写入的覆盖先写入的"""
        with self._lock:
            self._results[domain] = result

    def get(self, domain: str) -> Optional[ProbeResult]:
        """读取结果，不存在时返回None"""
        with self._lock:
            return self._results.get(domain)

    def snapshot(self) -> Dict[str, ProbeResult]:
        """返回当前全部结果的副本"""
        with self._lock:
            return dict(self._results)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __contains__(self, domain: str) -> bool:
        with self._lock:
            return domain in self._results
