"""活动多道菜菜单规划（Pro Chef 模式）。"""

from typing import List, Literal, Optional

from pydantic import Field

from kitchen_core.domain.error_classifier import ErrorKind, classify
from kitchen_core.flows.base import CamelModel, error_title_notes, run_structured
from kitchen_core.i18n import get_localizer
from kitchen_core.infrastructure.logging.logger import logger
from kitchen_core.prompts import render_prompt
from kitchen_core.providers.base import ProviderClient

CourseType = Literal["starter", "main", "dessert"]

# 短于该长度的失败说明视为模型没有给出原因
MIN_FAILURE_NOTES_LENGTH = 20


class MenuRequest(CamelModel):
    ingredients: str
    event_theme: str
    num_guests: int = Field(gt=0)
    courses: List[CourseType]
    preferences: Optional[str] = None
    language: Optional[str] = None
    taste_preference: Optional[str] = None


class ProCourse(CamelModel):
    type: CourseType
    recipe_name: str
    ingredients: str
    instructions: str


class MenuResult(CamelModel):
    menu_title: str
    event_theme: str
    num_guests: int
    courses: List[ProCourse] = []
    chef_notes: Optional[str] = None


def generate_pro_menu(provider: ProviderClient, request: MenuRequest) -> MenuResult:
    language = request.language or "English"
    loc = get_localizer(language)

    def failed(title: str, notes: str) -> MenuResult:
        return MenuResult(
            menu_title=title,
            event_theme=request.event_theme,
            num_guests=request.num_guests,
            courses=[],
            chef_notes=notes,
        )

    if not request.ingredients or not request.ingredients.strip():
        return failed(loc.text("menu", "no_ingredients_title"), loc.text("menu", "no_ingredients_notes"))
    if not request.courses:
        return failed(loc.text("menu", "no_courses_title"), loc.text("menu", "no_courses_notes"))

    try:
        prompt = render_prompt("generate_pro_menu", **_prompt_params(request, language))
        output = run_structured(
            provider,
            flow="generate_pro_menu",
            prompt=prompt,
            model="pro-menu",
            output_model=MenuResult,
            language=language,
        )
    except Exception as e:
        message = str(e)
        if "insufficient" in message or "Cannot create" in message:
            logger.warning(
                "Menu generation reported insufficient ingredients",
                extra={"extra": {"flow": "generate_pro_menu", "error": message}},
            )
            return failed(
                f"{loc.text('menu', 'fail_title')} ({language})",
                loc.text("menu", "insufficient_notes"),
            )
        classification = classify(e)
        logger.error(
            "Menu generation failed",
            exc_info=True,
            extra={"extra": {"flow": "generate_pro_menu", "error_kind": classification.kind.value}},
        )
        title, notes = error_title_notes(loc, "menu", classification)
        if classification.kind not in (ErrorKind.BUSY, ErrorKind.CONFIG_ISSUE):
            title = f"{title} ({language})"
        return failed(title, notes)

    if output is None:
        return failed(f"{loc.text('menu', 'ai_error_title')} ({language})", loc.text("menu", "ai_error_notes"))
    return _post_process(output, request, loc, language)


def _post_process(output: MenuResult, request: MenuRequest, loc, language: str) -> MenuResult:
    title_failed = "Failed" in output.menu_title or "Error" in output.menu_title
    if title_failed:
        if not output.chef_notes or len(output.chef_notes) < MIN_FAILURE_NOTES_LENGTH:
            output.chef_notes = loc.text("menu", "insufficient_notes")
    elif not output.courses and request.courses:
        logger.warning(
            "Menu has a success title but no courses",
            extra={"extra": {"flow": "generate_pro_menu", "menu_title": output.menu_title}},
        )
        output.menu_title = f"{loc.text('menu', 'fail_title')} ({language})"
        output.chef_notes = loc.text("menu", "insufficient_notes")
    elif output.courses and not output.chef_notes:
        output.chef_notes = loc.text("menu", "success_notes")
    return output


def _prompt_params(request: MenuRequest, language: str) -> dict:
    return {
        "language": language,
        "event_theme": request.event_theme,
        "num_guests": request.num_guests,
        "ingredients": request.ingredients,
        "courses": ", ".join(request.courses),
        "course_count": len(request.courses),
        "taste_preference": request.taste_preference or "Any",
        "preferences": request.preferences or "None",
    }
