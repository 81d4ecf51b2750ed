"""提示词模板加载与渲染。

模板按语言(locale) 存放在 prompts/<locale>/<name>.md，占位符使用
str.format 语法（{language}、{ingredients} 等），字面量花括号需写成 {{ }}。
渲染时缺少的占位符会抛出 PromptTemplateError。
"""

from functools import lru_cache
from pathlib import Path

from kitchen_core.domain.exceptions import PromptTemplateError


PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=None)
def load_prompt(name: str, locale: str = "en") -> str:
    """按名称读取模板原文，例如 load_prompt("generate_recipe")。"""

    fname = PROMPTS_DIR / locale / f"{name}.md"
    return fname.read_text(encoding="utf-8")


def render_prompt(name: str, locale: str = "en", **params: object) -> str:
    template = load_prompt(name, locale)
    try:
        return template.format(**params)
    except KeyError as e:
        raise PromptTemplateError(helper=str(e.args[0]), template=name) from e
    except IndexError as e:
        raise PromptTemplateError(helper="positional", template=name) from e
