"""本地化文案加载工具。

按语言代码从 i18n/locales 目录读取 YAML 文案表，每个文件一种语言，
按 section（chat、recipe、refine、menu、explain）分组。

语言代码取语言名称的前两个字符并转小写（"Spanish" -> "sp"）。每个文案表
通过 aliases 声明自己能匹配的代码；未知代码回退到英文，某语言缺少的键
也逐键回退到英文。
"""

from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional

import yaml


LOCALES_DIR = Path(__file__).resolve().parent / "locales"
DEFAULT_CODE = "en"

Catalog = Mapping[str, Mapping[str, str]]


def language_code(language_name: Optional[str]) -> str:
    """语言名称 -> 两位语言代码，空值视为英文。"""

    if not language_name or not language_name.strip():
        return DEFAULT_CODE
    return language_name.strip()[:2].lower()


@lru_cache(maxsize=1)
def load_catalogs() -> Mapping[str, "LocaleCatalog"]:
    """读取全部文案表，返回 alias -> LocaleCatalog 的只读索引。"""

    index: Dict[str, LocaleCatalog] = {}
    for path in sorted(LOCALES_DIR.glob("*.yaml")):
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        catalog = LocaleCatalog.from_mapping(path.stem, raw)
        for alias in {path.stem, *catalog.aliases}:
            index[alias.lower()] = catalog
    if DEFAULT_CODE not in index:
        raise RuntimeError(f"Missing default locale file: {LOCALES_DIR / (DEFAULT_CODE + '.yaml')}")
    return MappingProxyType(index)


class LocaleCatalog:
    """一种语言的只读文案表。"""

    def __init__(self, code: str, language: str, aliases: tuple, sections: Catalog):
        self.code = code
        self.language = language
        self.aliases = aliases
        self._sections = sections

    @classmethod
    def from_mapping(cls, code: str, raw: dict) -> "LocaleCatalog":
        sections = {
            name: MappingProxyType({str(k): str(v) for k, v in values.items()})
            for name, values in raw.items()
            if isinstance(values, dict)
        }
        return cls(
            code=code,
            language=str(raw.get("language") or code),
            aliases=tuple(str(a) for a in raw.get("aliases") or ()),
            sections=MappingProxyType(sections),
        )

    def get(self, section: str, key: str) -> Optional[str]:
        return self._sections.get(section, {}).get(key)


class Localizer:
    """绑定到某一语言的文案查询器，缺失键回退到英文。"""

    def __init__(self, catalog: LocaleCatalog, fallback: LocaleCatalog):
        self._catalog = catalog
        self._fallback = fallback

    @property
    def code(self) -> str:
        return self._catalog.code

    @property
    def language(self) -> str:
        return self._catalog.language

    def text(self, section: str, key: str, **params: object) -> str:
        """取文案并替换 {name} 占位符；两级都找不到时抛 KeyError。"""

        template = self._catalog.get(section, key)
        if template is None:
            template = self._fallback.get(section, key)
        if template is None:
            raise KeyError(f"{section}.{key}")
        for name, value in params.items():
            template = template.replace("{" + name + "}", str(value))
        return template


def resolve_code(language_name: Optional[str]) -> str:
    """返回实际使用的文案表代码，未知语言为 "en"。"""

    catalog = load_catalogs().get(language_code(language_name))
    return catalog.code if catalog else DEFAULT_CODE


@lru_cache(maxsize=None)
def _localizer_for(code: str) -> Localizer:
    catalogs = load_catalogs()
    return Localizer(catalogs.get(code, catalogs[DEFAULT_CODE]), catalogs[DEFAULT_CODE])


def get_localizer(language_name: Optional[str]) -> Localizer:
    return _localizer_for(resolve_code(language_name))
