# site_sections/sinks/json_report.py

"""
Генерация JSON-отчёта для проекта SiteSections.

Каждая строка экспорта сохраняется объектом с ключами из заголовка.
"""
import json
import logging
from pathlib import Path
from typing import Sequence

from site_sections.crawler.models import PageRecord
from site_sections.errors import ExportFailure, SetupError
from site_sections.sinks.base import HEADER, table

logger = logging.getLogger("SiteSections")


def render_json(records: Sequence[PageRecord], output_path: Path | str) -> Path:
    """
    Сохраняет записи в формате JSON по указанному пути (файл перезаписывается).

    :param records: записи страниц после финализации разделов
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from site_sections.sinks.json_report import render_json
    report_path = render_json(report.records, 'reports/report.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    _, *rows = table(records)
    data = [dict(zip(HEADER, row)) for row in rows]

    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return output


class JsonSink:
    """Файловый приёмник JSON."""

    def __init__(self, output_path: Path | str) -> None:
        self.output_path = Path(output_path)

    def validate(self) -> None:
        parent = self.output_path.expanduser().resolve().parent
        if parent.exists() and not parent.is_dir():
            raise SetupError(f"Output directory is not a directory: {parent}")

    def write(self, records: Sequence[PageRecord]) -> None:
        try:
            saved = render_json(records, self.output_path)
        except OSError as exc:
            raise ExportFailure(f"Ошибка при сохранении JSON: {exc}") from exc
        logger.info("JSON report: %s (%d rows)", saved, len(records))
