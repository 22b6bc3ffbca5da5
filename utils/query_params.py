# -*- coding: utf-8 -*-
"""列表查询参数解析。

约定：

* ``order=field`` 表示 ``field ASC``，``order=-field`` 表示 ``field DESC``；
* 过滤条件取 query 中在白名单内的键，覆盖默认条件；
* 非法的排序字段、过滤字段一律静默丢弃，回落到默认值，不抛异常。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

ASC = "ASC"
DESC = "DESC"

# 数据库整型上限（有符号 64 位），超出的值无法绑定到 SQL 参数
MAX_SQL_INT = 2 ** 63 - 1


def bounded_int(value: Any) -> int:
    """转换为整数；超出 64 位有符号范围时抛 ``ValueError``。"""

    number = int(value)
    if not -MAX_SQL_INT - 1 <= number <= MAX_SQL_INT:
        raise ValueError(f"integer out of range: {value!r}")
    return number


@dataclass(frozen=True)
class ListQuerySpec:
    """单个资源的列表查询白名单配置"""

    order_fields: FrozenSet[str] = frozenset()
    filter_fields: FrozenSet[str] = frozenset()
    default_order: Mapping[str, str] = field(default_factory=dict)


def resolve_order(
    raw_order: Optional[str],
    allowed_fields: Iterable[str],
    default_order: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """解析排序参数。

    :param raw_order: query 中的 ``order`` 参数，可为 ``None``。
    :param allowed_fields: 允许排序的字段。
    :param default_order: 默认排序；解析结果为空时原样返回。
    :return: 仅含一个 ``{field: ASC|DESC}`` 的字典，或默认排序。
    """

    default = dict(default_order or {})
    if not raw_order:
        return default

    raw_order = raw_order.strip()
    if raw_order.startswith("-"):
        name, direction = raw_order[1:], DESC
    else:
        name, direction = raw_order, ASC

    if not name or name not in set(allowed_fields):
        return default
    return {name: direction}


def resolve_filter(
    raw_params: Optional[Mapping[str, Any]],
    allowed_fields: Iterable[str],
    default_filter: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """白名单过滤 query 参数，并覆盖到默认条件上。"""

    result = dict(default_filter or {})
    if not raw_params:
        return result
    allowed = set(allowed_fields)
    for key in raw_params.keys():
        if key in allowed:
            result[key] = raw_params[key]
    return result


def parse_id_list(raw: Any, limit: int = 100) -> List[int]:
    """将 ``1,2,3`` 形式的参数解析为去重后的正整数列表（保持顺序，最多 ``limit`` 个）。"""

    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        parts = raw
    else:
        parts = str(raw).split(",")

    result: List[int] = []
    seen = set()
    for part in parts:
        try:
            value = bounded_int(str(part).strip())
        except ValueError:
            continue
        if value <= 0 or value in seen:
            continue
        seen.add(value)
        result.append(value)
        if len(result) >= limit:
            break
    return result


def parse_pagination(
    args: Optional[Mapping[str, Any]],
    default_per_page: int = 15,
    max_per_page: int = 100,
) -> Tuple[int, int]:
    """读取 ``page`` / ``per_page``，非法值回落到默认值，``per_page`` 不超过上限。

    ``page`` 过大时收敛到偏移量不溢出的最大页。
    """

    args = args or {}

    def _int(name: str, default: int) -> int:
        try:
            return int(args.get(name, default))
        except (TypeError, ValueError):
            return default

    page = _int("page", 1)
    if page < 1:
        page = 1
    per_page = _int("per_page", default_per_page)
    if per_page < 1:
        per_page = default_per_page
    per_page = min(per_page, max_per_page)
    page = min(page, MAX_SQL_INT // per_page + 1)
    return page, per_page
