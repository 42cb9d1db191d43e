# File: site_sections/sinks/html_report.py
"""site_sections.sinks.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

import logging
from collections import Counter
from functools import lru_cache
from pathlib import Path
from typing import Optional, Sequence, Union

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from site_sections.crawler.models import PageRecord
from site_sections.errors import ExportFailure, SetupError
from site_sections.sinks.base import HEADER

logger = logging.getLogger("SiteSections")

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"


@lru_cache(maxsize=8)
def _environment(template_dir: str) -> Environment:
    return Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_html(
    records: Sequence[PageRecord],
    template_dir: Union[Path, str],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит ``report.html.j2`` с таблицей строк и сводкой разделов.

    В шаблон передаются ``header`` (заголовок экспорта), ``rows`` (строки
    как текст) и ``sections`` (раздел -> число страниц, по алфавиту).
    Файл перезаписывается; возвращается его путь.
    """
    template = _environment(str(Path(template_dir).resolve())).get_template(TEMPLATE_NAME)
    sections = Counter(record.section for record in records if record.section)
    html = template.render(
        header=HEADER,
        rows=[record.to_row() for record in records],
        sections=dict(sorted(sections.items())),
    )

    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(html, encoding="utf-8")
    return target


class HtmlSink:
    """Файловый приёмник HTML."""

    def __init__(self, output_path: Path | str, template_dir: Optional[Path | str] = None) -> None:
        self.output_path = Path(output_path)
        self.template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR

    def validate(self) -> None:
        if not (self.template_dir / TEMPLATE_NAME).is_file():
            raise SetupError(f"Template {TEMPLATE_NAME} not found in {self.template_dir}")

    def write(self, records: Sequence[PageRecord]) -> None:
        try:
            saved = render_html(records, self.template_dir, self.output_path)
        except (OSError, TemplateError) as exc:
            raise ExportFailure(f"Ошибка при сохранении HTML: {exc}") from exc
        logger.info("HTML report: %s (%d rows)", saved, len(records))
