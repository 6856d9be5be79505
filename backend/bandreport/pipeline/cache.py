"""
缓存 - 分页方案与行公式结果的LRU缓存

分页方案按 (模板指纹, 数据指纹, 函数表版本, 页面几何) 缓存；
行公式结果按 (模板+数据+函数表版本, 带区, 公式, 行号, 页码) 缓存。
引擎是纯函数，相同输入得到相同输出，缓存不影响结果。
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any

logger = logging.getLogger(__name__)


def fingerprint(value: Any) -> str:
    """内容指纹（键排序后的JSON摘要）"""
    payload = json.dumps(value, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()


class LRUCache:
    """按最近使用淘汰的缓存"""

    def __init__(self, max_size: int = 128):
        self.max_size = max(1, max_size)
        self._items: OrderedDict[Hashable, Any] = OrderedDict()
        self.stats = {"hits": 0, "misses": 0, "evictions": 0}

    def get(self, key: Hashable, default: Any = None) -> Any:
        if key in self._items:
            self._items.move_to_end(key)
            self.stats["hits"] += 1
            return self._items[key]
        self.stats["misses"] += 1
        return default

    def put(self, key: Hashable, value: Any) -> None:
        self._items[key] = value
        self._items.move_to_end(key)
        while len(self._items) > self.max_size:
            self._items.popitem(last=False)
            self.stats["evictions"] += 1

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        if key in self._items:
            return self.get(key)
        self.stats["misses"] += 1
        value = compute()
        self.put(key, value)
        return value

    def clear(self) -> None:
        self._items.clear()
        logger.debug("缓存已清空")

    def __contains__(self, key: Hashable) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)
