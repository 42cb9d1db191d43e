# File: site_sections/sinks/__init__.py
"""site_sections.sinks: Приёмники результатов (Google Sheets, JSON, HTML)."""

from __future__ import annotations

from pathlib import Path

from site_sections.config import CrawlerConfig
from site_sections.sinks.base import HEADER, Sink, table


def make_sink(config: CrawlerConfig) -> Sink:
    """Возвращает приёмник, выбранный в ``config.sink``."""
    if config.sink == "json":
        from site_sections.sinks.json_report import JsonSink

        return JsonSink(config.output or Path("report.json"))
    if config.sink == "html":
        from site_sections.sinks.html_report import HtmlSink

        return HtmlSink(config.output or Path("report.html"), config.template_dir)

    from site_sections.sinks.sheets import GoogleSheetsSink

    return GoogleSheetsSink(config.sheet_id, config.credentials_path, config.sheet_range)


__all__ = ["HEADER", "Sink", "make_sink", "table"]
