"""用户标记部分附加食材不可用后，调整原菜谱或说明无法调整的原因。"""

from typing import List, Optional

from kitchen_core.domain.error_classifier import ErrorKind, classify
from kitchen_core.flows.base import CamelModel, error_title_notes, run_structured
from kitchen_core.i18n import get_localizer
from kitchen_core.infrastructure.logging.logger import logger
from kitchen_core.prompts import render_prompt
from kitchen_core.providers.base import ProviderClient


class RefineRequest(CamelModel):
    original_recipe_name: str = ""
    provided_ingredients: List[str] = []
    original_additional_ingredients: List[str] = []
    unavailable_additional_ingredients: List[str] = []
    original_instructions: str = ""
    language: Optional[str] = None
    taste_preference: Optional[str] = None


class RefineResult(CamelModel):
    refined_recipe_name: str
    refined_ingredients: str = ""
    refined_instructions: str = ""
    feasibility_notes: str = ""


def refine_recipe(provider: ProviderClient, request: RefineRequest) -> RefineResult:
    language = request.language or "English"
    loc = get_localizer(language)

    if not request.original_recipe_name or not request.original_instructions:
        return RefineResult(
            refined_recipe_name=loc.text("refine", "missing_title"),
            refined_ingredients=loc.text("refine", "missing_ingredients"),
            refined_instructions=loc.text("refine", "missing_instructions"),
            feasibility_notes=loc.text("refine", "missing_notes"),
        )

    try:
        prompt = render_prompt("refine_recipe", **_prompt_params(request, language))
        output = run_structured(
            provider,
            flow="refine_recipe",
            prompt=prompt,
            model="recipe",
            output_model=RefineResult,
            language=language,
        )
    except Exception as e:
        classification = classify(e)
        logger.error(
            "Recipe refinement failed",
            exc_info=True,
            extra={"extra": {"flow": "refine_recipe", "error_kind": classification.kind.value}},
        )
        title, notes = error_title_notes(loc, "refine", classification)
        if classification.kind not in (ErrorKind.BUSY, ErrorKind.CONFIG_ISSUE):
            title = f"{title} ({language})"
        return RefineResult(
            refined_recipe_name=title,
            refined_ingredients=loc.text("refine", "fail_ingredients"),
            refined_instructions=loc.text("refine", "fail_instructions"),
            feasibility_notes=notes,
        )

    if output is None:
        return RefineResult(
            refined_recipe_name=f"{loc.text('refine', 'ai_error_title')} ({language})",
            refined_ingredients=loc.text("refine", "ai_error_ingredients"),
            refined_instructions=loc.text("refine", "ai_error_instructions"),
            feasibility_notes=loc.text("refine", "ai_error_notes"),
        )

    output.refined_ingredients = output.refined_ingredients or loc.text("refine", "default_ingredients")
    output.refined_instructions = output.refined_instructions or loc.text("refine", "default_instructions")
    output.feasibility_notes = output.feasibility_notes or loc.text("refine", "default_notes")
    if _looks_failed(output.refined_recipe_name) and not _explains_failure(output.feasibility_notes):
        logger.warning(
            "Refinement failed without a specific explanation",
            extra={"extra": {"flow": "refine_recipe", "notes": output.feasibility_notes}},
        )
        output.feasibility_notes = loc.text("refine", "impossible_notes")
    return output


def _looks_failed(title: str) -> bool:
    return "Failed" in title or "Error" in title


def _explains_failure(notes: str) -> bool:
    return "essential" in notes or "crucial" in notes


def _bullets(items: List[str]) -> str:
    return " ".join(f"- {item}" for item in items)


def _prompt_params(request: RefineRequest, language: str) -> dict:
    taste = (request.taste_preference or "").strip()
    return {
        "language": language,
        "original_recipe_name": request.original_recipe_name,
        "taste_clause": f" intended to be '{taste}' style" if taste else "",
        "style": f"'{taste}' style" if taste else "original style",
        "provided_ingredients": _bullets(request.provided_ingredients) or "None listed.",
        "original_additional_ingredients": _bullets(request.original_additional_ingredients) or "None listed.",
        "original_instructions": request.original_instructions,
        "taste_preference": taste or "Any",
        "unavailable_ingredients": (
            _bullets(request.unavailable_additional_ingredients) or "None marked as unavailable."
        ),
    }
