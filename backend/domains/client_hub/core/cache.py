"""
客户端视图缓存

按视图键缓存最近一次拿到的完整列表（笔记本列表或笔记列表）。

写入有两个来源:
- 拉取（fetch）: 导航时缓存缺失或已过期
- 推送（push）: 服务端在变更后主动下发，无条件覆盖

每次写入或失效都会推进全局版本号。拉取结果写入前会检查该条目在拉取
开始之后是否已被推送覆盖，推送总是更新，慢拉取不能把它改回旧数据。
失效版本按视图键单独记录，尚未缓存的视图也会记录，拉取开始后发生过
失效的视图，其拉取结果只能以过期状态写入。
缓存只保存服务端给出的列表，从不在本地增删列表项。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from domains.notebook_hub.core.views import ViewKey


class Freshness(str, Enum):
    """缓存条目新鲜度"""
    NEVER_LOADED = "never_loaded"
    LOADED = "loaded"
    STALE = "stale"


@dataclass
class CacheEntry:
    """
    缓存条目

    Attributes:
        key: 视图键
        data: 服务端返回的有序列表（原样保存的 JSON 对象）
        freshness: 新鲜度
        version: 最后一次写入 / 失效时的全局版本号
        source: 最后一次写入来源（fetch / push）
    """
    key: ViewKey
    data: list[dict[str, Any]] = field(default_factory=list)
    freshness: Freshness = Freshness.LOADED
    version: int = 0
    source: str = "fetch"

    @property
    def is_fresh(self) -> bool:
        return self.freshness == Freshness.LOADED


class ViewCache:
    """视图缓存，每个会话一个实例，登出时整体清空"""

    def __init__(self):
        self._entries: dict[ViewKey, CacheEntry] = {}
        self._invalidated: dict[ViewKey, int] = {}
        self._version = 0

    @property
    def version(self) -> int:
        """当前全局版本号，发起拉取或变更前记录，用于判断之后是否有更新写入"""
        return self._version

    def _bump(self) -> int:
        self._version += 1
        return self._version

    def get(self, key: ViewKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def freshness(self, key: ViewKey) -> Freshness:
        entry = self._entries.get(key)
        return entry.freshness if entry else Freshness.NEVER_LOADED

    def is_fresh(self, key: ViewKey) -> bool:
        return self.freshness(key) == Freshness.LOADED

    def invalidated_since(self, key: ViewKey, version: int) -> bool:
        """视图在 version 之后是否被标记过期（未缓存的视图同样适用）"""
        return self._invalidated.get(key, 0) > version

    def store_fetched(self, key: ViewKey, data: list[dict[str, Any]], started_version: int) -> CacheEntry:
        """
        写入拉取结果

        Args:
            started_version: 发起拉取时的 version

        Returns:
            写入后的条目。若拉取期间该条目已有更新的有效数据（推送或更晚的拉取），
            保留已有数据；若拉取期间该视图被标记过期，写入数据但保持过期状态。
        """
        entry = self._entries.get(key)
        if entry is not None and entry.version > started_version and entry.freshness == Freshness.LOADED:
            return entry

        stale = self.invalidated_since(key, started_version)
        entry = CacheEntry(
            key=key,
            data=list(data),
            freshness=Freshness.STALE if stale else Freshness.LOADED,
            version=self._bump(),
            source="fetch",
        )
        self._entries[key] = entry
        return entry

    def apply(self, key: ViewKey, data: list[dict[str, Any]]) -> CacheEntry:
        """写入推送数据（无条件覆盖）"""
        entry = CacheEntry(key=key, data=list(data), freshness=Freshness.LOADED,
                           version=self._bump(), source="push")
        self._entries[key] = entry
        return entry

    def invalidate(self, keys: Iterable[ViewKey], unless_updated_since: Optional[int] = None) -> list[ViewKey]:
        """
        将条目标记为过期，下次导航到这些视图时重新拉取

        Args:
            keys: 视图键
            unless_updated_since: 版本号；条目在此之后已被推送覆盖（推送先于
                HTTP 响应到达）则保持不变

        Returns:
            由有效变为过期的已缓存视图键
        """
        invalidated = []
        for key in keys:
            entry = self._entries.get(key)
            if (
                entry is not None
                and unless_updated_since is not None
                and entry.source == "push"
                and entry.is_fresh
                and entry.version > unless_updated_since
            ):
                continue

            version = self._bump()
            self._invalidated[key] = version
            if entry is None:
                continue
            if entry.is_fresh:
                invalidated.append(key)
            entry.freshness = Freshness.STALE
            entry.version = version
        return invalidated

    def discard(self, keys: Iterable[ViewKey]) -> None:
        for key in keys:
            self._entries.pop(key, None)

    def prune_notebooks(self, section: str, alive_ids: Iterable[str]) -> list[ViewKey]:
        """删除分区内已不存在的笔记本的笔记列表缓存"""
        alive = set(alive_ids)
        removed = [
            key for key in self._entries
            if key.section == section and key.notebook_id and key.notebook_id not in alive
        ]
        self.discard(removed)
        return removed

    def find_item(self, item_id: str, prefer: Optional[ViewKey] = None) -> Optional[dict[str, Any]]:
        """在已缓存的列表中按 _id 查找条目（优先查找 prefer 视图）"""
        entries = list(self._entries.values())
        if prefer is not None and prefer in self._entries:
            entries.insert(0, self._entries[prefer])
        for entry in entries:
            for item in entry.data:
                if item.get("_id") == item_id:
                    return item
        return None

    def keys(self) -> list[ViewKey]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._invalidated.clear()

    def __contains__(self, key: ViewKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
