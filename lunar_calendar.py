# -*- coding: utf-8 -*-
"""
农历与节气年表

按年份打印：从上年大雪到下年惊蛰的 31 个节气时刻，以及该农历年的各月
（含闰月）初一与天数。

用法:
    python lunar_calendar.py [year | start-end | y1,y2,...] [--provider erfa|spice] [--jobs N]
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from lunisolar import (
    CalendarError,
    EphemerisUnavailable,
    LunarCalendar,
    LunarYear,
    Settings,
)
from models import pillar_name

LOGGER = logging.getLogger("lunar-calendar")


def parse_year_arguments(arg: str) -> List[int]:
    """解析年份参数，支持单年、范围以及逗号分隔列表。"""

    years: List[int] = []
    parts = [p.strip() for p in arg.split(',') if p.strip()]
    if not parts:
        raise ValueError("年份参数为空")

    for part in parts:
        if '-' in part[1:]:
            start_str, end_str = part.split('-', 1)
            start = int(start_str)
            end = int(end_str)
            if end < start:
                raise ValueError(f"范围 {part} 结束年份早于开始年份")
            years.extend(range(start, end + 1))
        else:
            years.append(int(part))

    # 去重同时保持输入顺序
    return list(dict.fromkeys(years))


def _zone_label(offset_hours: float) -> str:
    sign = '+' if offset_hours >= 0 else '-'
    return f"UTC{sign}{abs(offset_hours):g}"


def format_year(lunar_year: LunarYear, offset_hours: float) -> str:
    lines = [f"农历 {lunar_year.year} 年（{pillar_name(lunar_year.pillar)}）"]
    if lunar_year.low_confidence:
        lines.append("  注意：闰月位置超出历史校订范围，仅按天文规则推算")

    lines.append("")
    lines.append(f"节气（{_zone_label(offset_hours)}）")
    lines.append("-" * 64)
    for instant in lunar_year.terms:
        kind = "节" if instant.is_jie else "气"
        lines.append(f"{instant.position:>2} {instant.name:<4} {kind}  {instant.solar.isoformat()}")

    lines.append("")
    lines.append("农历月")
    lines.append("-" * 64)
    for month in lunar_year.months:
        label = f"闰{month.ordinal}月" if month.is_leap else f"{month.ordinal}月"
        size = "大" if month.day_count == 30 else "小"
        lines.append(
            f"{label:<5} {pillar_name(month.pillar)}  初一 {month.first_day}  {month.day_count} 天（{size}）"
        )
    lines.append(f"闰月: {lunar_year.leap_month or '无'}  全年 {lunar_year.day_count} 天")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print lunisolar years: solar terms and months.")
    parser.add_argument(
        'years', nargs='?', default=None,
        help="year, range start-end or comma separated list (default: this year)",
    )
    parser.add_argument('--provider', choices=("erfa", "spice"), default=None,
                        help="ephemeris provider (default: LUNISOLAR_EPHEMERIS or erfa)")
    parser.add_argument('--jobs', type=int, default=1,
                        help="threads used to build several years (-1: all cores)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = build_parser().parse_args(argv)

    if args.years is None:
        years = [datetime.now().year]
    else:
        try:
            years = parse_year_arguments(args.years)
        except ValueError as exc:
            print(f"年份参数无效: {exc}", file=sys.stderr)
            return 2

    try:
        settings = Settings.from_env()
        if args.provider:
            settings = replace(settings, ephemeris=args.provider)
        calendar = LunarCalendar.from_settings(settings)
        lunar_years = calendar.prefetch(years, n_jobs=args.jobs)
    except (CalendarError, EphemerisUnavailable, ValueError) as exc:
        LOGGER.error(json.dumps({"event": "cli_failed", "error": str(exc)}))
        print(f"计算失败: {exc}", file=sys.stderr)
        return 1

    for idx, lunar_year in enumerate(lunar_years):
        if idx:
            print("\n" + "=" * 72 + "\n")
        print(format_year(lunar_year, calendar.timescale.utc_offset_hours))
    return 0


if __name__ == "__main__":
    sys.exit(main())
