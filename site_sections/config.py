# === FILE: site_sections/config.py ===
"""
Конфигурация обхода SiteSections: pydantic-модель CrawlerConfig и её загрузка.

Порядок приоритета: значения по умолчанию → YAML/JSON файл → переменные
окружения (``GOOGLE_SHEET_ID``, ``GOOGLE_APPLICATION_CREDENTIALS``,
``SECTION_WHITELIST``, ``PROXY_URLS``) → опции командной строки.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, List, Literal, Mapping, Optional, Tuple, Type, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

DEFAULT_START_URL = "https://www.bci.cl"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:118.0) Gecko/20100101 Firefox/118.0"
)
DEFAULT_HEADERS: Dict[str, str] = {
    "Accept-Language": "es-ES,es;q=0.9,en;q=0.8",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Connection": "keep-alive",
}
DEFAULT_BLOCK_SIGNATURES: Tuple[str, ...] = ("captcha", "forbidden", "radware")

# переменная окружения -> поле конфига
ENV_OVERRIDES: Dict[str, str] = {
    "GOOGLE_SHEET_ID": "sheet_id",
    "GOOGLE_APPLICATION_CREDENTIALS": "credentials_path",
    "SECTION_WHITELIST": "section_whitelist",
    "PROXY_URLS": "proxy_urls",
}


def split_csv(value: str) -> List[str]:
    """Разбивает строку через запятую, отбрасывая пустые элементы."""
    return [item.strip() for item in value.split(",") if item.strip()]


class CrawlerConfig(BaseModel):
    """Конфигурация для одного запуска обхода."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    start_url: HttpUrl = Field(
        DEFAULT_START_URL, validate_default=True, description="Стартовый URL обхода."
    )
    max_depth: int = Field(2, ge=0, description="Максимальная глубина обхода ссылок.")
    seed_www: bool = Field(False, description="Добавить www-вариант стартового URL.")

    backend: Literal["http", "browser"] = Field("http", description="Способ загрузки страниц.")
    concurrency: int = Field(5, ge=1, description="Число параллельных воркеров.")
    retry_times: int = Field(3, ge=0, description="Число повторных попыток загрузки.")
    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    headers: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_HEADERS), description="Дополнительные заголовки."
    )
    proxy_urls: List[str] = Field(default_factory=list, description="Прокси для ротации.")
    jitter_min: float = Field(0.0, ge=0, description="Минимальная случайная пауза (секунд).")
    jitter_max: float = Field(0.0, ge=0, description="Максимальная случайная пауза (секунд).")
    headless: bool = Field(True, description="Запуск браузера без окна.")
    launch_args: List[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-dev-shm-usage"],
        description="Аргументы запуска браузера.",
    )

    block_signatures: Tuple[str, ...] = Field(
        DEFAULT_BLOCK_SIGNATURES, description="Признаки антибот-страницы."
    )
    section_whitelist: Optional[FrozenSet[str]] = Field(
        None, description="Разрешённые разделы; None: порог по частоте."
    )

    sink: Literal["sheets", "json", "html"] = Field("sheets", description="Приёмник результатов.")
    sheet_id: Optional[str] = Field(None, description="ID Google-таблицы.")
    sheet_range: str = Field("A1", min_length=1, description="Начальная ячейка записи.")
    credentials_path: Path = Field(
        Path("credentials.json"), description="Файл сервисного аккаунта Google."
    )
    output: Optional[Path] = Field(None, description="Файл отчёта для json/html.")
    template_dir: Optional[Path] = Field(None, description="Папка с Jinja2-шаблонами.")

    @field_validator("proxy_urls", mode="before")
    def _split_proxies(cls, v: Any) -> Any:
        if isinstance(v, str):
            return split_csv(v)
        return v

    @field_validator("section_whitelist", mode="before")
    def _normalize_whitelist(cls, v: Any) -> Any:
        if v is None:
            return None
        items = split_csv(v) if isinstance(v, str) else [str(item).strip() for item in v]
        normalized = frozenset(item.lower() for item in items if item)
        return normalized or None

    @field_validator("block_signatures", mode="before")
    def _lower_signatures(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = split_csv(v)
        return tuple(str(sig).lower() for sig in v)

    @model_validator(mode="after")
    def _check_jitter(self) -> CrawlerConfig:
        if self.jitter_max < self.jitter_min:
            raise ValueError("jitter_max must be >= jitter_min")
        return self

    def with_overrides(self, **overrides: Any) -> CrawlerConfig:
        """Возвращает новую проверенную копию с заменёнными полями (None пропускается)."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return self
        data = self.model_dump(mode="json")
        data.update(updates)
        return type(self).model_validate(data)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")

# суффикс файла -> (название формата, парсер, его исключение)
_PARSERS: Dict[str, Tuple[str, Callable[[str], Any], Type[Exception]]] = {
    ".yaml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".yml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".json": ("JSON", json.loads, json.JSONDecodeError),
}


def read_config_file(path: Path) -> dict[str, Any]:
    """Читает YAML/JSON-файл и возвращает словарь верхнего уровня."""
    try:
        fmt, parse, parse_error = _PARSERS[path.suffix.lower()]
    except KeyError:
        raise ValueError(f"Неподдерживаемый формат конфига: {path.suffix or path.name}") from None
    try:
        data = parse(path.read_text(encoding="utf-8"))
    except parse_error as exc:
        raise ValueError(f"Неправильный {fmt} в {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень {fmt} должен быть mapping, получено {type(data).__name__}")
    return data


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """Собирает значения конфигурации из переменных окружения."""
    environ = os.environ if environ is None else environ
    return {field: environ[var] for var, field in ENV_OVERRIDES.items() if environ.get(var)}


def load_config(
    path: Union[str, Path, None] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CrawlerConfig:
    """
    Файл (явный путь или configs/default.yaml, если он есть) + переменные
    окружения -> проверенный CrawlerConfig.
    """
    if path is None:
        data = read_config_file(DEFAULT_CONFIG_PATH) if DEFAULT_CONFIG_PATH.is_file() else {}
    else:
        path = Path(path).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f"Файл конфигурации не найден: {path}")
        data = read_config_file(path)

    data.update(env_overrides(environ))
    return CrawlerConfig(**data)


__all__ = ["CrawlerConfig", "load_config", "read_config_file", "env_overrides", "split_csv"]
