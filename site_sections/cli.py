# File: site_sections/cli.py
"""
CLI SiteSections на click.

    site-sections [--config PATH] [--log-level LEVEL] crawl [START_URL] [MAX_DEPTH] [опции]
    site-sections config

START_URL по умолчанию берётся из конфига (https://www.bci.cl), MAX_DEPTH
(целое >= 0) тоже; некорректная глубина завершает работу с ошибкой
использования ещё до обхода. Ошибки настройки и экспорта дают код выхода 1.

Пример:
  site-sections crawl https://example.com 1 --sink json --output report.json
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from site_sections import __version__
from site_sections.config import load_config
from site_sections.engine import run_crawl
from site_sections.errors import SiteSectionsError
from site_sections.logger import DEFAULT_FORMAT, init_logging

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
FILE_PATH = click.Path(dir_okay=False, path_type=Path)


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def logging_options(func):
    """Опции логирования группы: уровень, файл с ротацией, формат."""
    func = click.option('--log-format', default=DEFAULT_FORMAT, show_default=True,
                        help='Формат строк лога')(func)
    func = click.option('--log-file', type=FILE_PATH, default=None,
                        help='Файл логов (по умолчанию только stdout)')(func)
    func = click.option('--log-level', type=click.Choice(LOG_LEVELS), default='INFO',
                        show_default=True, help='Уровень логирования')(func)
    return func


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteSections, version %(version)s')
@click.option('--config', '-c', 'config_path', default=None,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='YAML/JSON-конфиг (по умолчанию configs/default.yaml, если есть)')
@logging_options
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """SiteSections: обход сайта и разметка разделов."""
    init_logging(level=log_level, log_file=log_file, log_format=log_format)
    try:
        ctx.obj = {'config': load_config(config_path)}
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('start_url', required=False)
@click.argument('max_depth', required=False, type=click.IntRange(min=0))
@click.option('--sink', type=click.Choice(['sheets', 'json', 'html']), help='Куда выгрузить строки')
@click.option('--output', '-o', type=FILE_PATH, help='Файл отчёта для json/html')
@click.option('--backend', type=click.Choice(['http', 'browser']), help='Загрузка страниц: aiohttp или Playwright')
@click.option('--concurrency', type=click.IntRange(min=1), help='Число воркеров')
@click.option('--whitelist', 'section_whitelist', help='Разрешённые разделы через запятую')
@click.option('--seed-www/--no-seed-www', default=None, help='Засеять также www-вариант стартового URL')
@click.option('--scan-timeout', type=float, help='Предел времени на весь обход (секунд)')
@click.pass_context
def crawl(ctx, scan_timeout, **overrides):
    """Обойти сайт от START_URL на глубину MAX_DEPTH и экспортировать строки."""
    try:
        cfg = ctx.obj['config'].with_overrides(**overrides)
    except ValidationError as e:
        print_error(f'Некорректные параметры: {e}')

    click.echo(f'🚀 Starting crawl from {cfg.start_url} (max_depth={cfg.max_depth})')
    try:
        report = run_crawl(cfg, timeout=scan_timeout)
    except asyncio.TimeoutError:
        print_error(f'Обход не завершён за {scan_timeout} секунд')
    except SiteSectionsError as e:
        print_error(f'Ошибка: {e}')

    click.echo(
        f'✅ Total pages: {len(report.records)} '
        f'(failed: {report.fetch_failures}, blocked: {report.blocked_pages})'
    )


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_obj
def show_config(obj):
    """Показать итоговую конфигурацию (файл + окружение) в JSON."""
    click.echo(obj['config'].model_dump_json(indent=2))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
