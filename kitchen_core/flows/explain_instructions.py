"""为新手逐步讲解菜谱步骤。"""

from typing import Optional

from kitchen_core.domain.error_classifier import classify
from kitchen_core.flows.base import CamelModel, error_message, run_structured
from kitchen_core.i18n import get_localizer
from kitchen_core.infrastructure.logging.logger import logger
from kitchen_core.prompts import render_prompt
from kitchen_core.providers.base import ProviderClient


class ExplainRequest(CamelModel):
    recipe_name: str = ""
    original_instructions: str = ""
    ingredients_list: str = ""
    language: Optional[str] = None


class ExplainResult(CamelModel):
    detailed_explanation: str


def explain_instructions(provider: ProviderClient, request: ExplainRequest) -> ExplainResult:
    language = request.language or "English"
    loc = get_localizer(language)

    if not request.original_instructions or not request.original_instructions.strip():
        return ExplainResult(detailed_explanation=loc.text("explain", "no_instructions"))

    try:
        prompt = render_prompt(
            "explain_instructions",
            language=language,
            recipe_name=request.recipe_name,
            ingredients_list=request.ingredients_list,
            original_instructions=request.original_instructions,
        )
        output = run_structured(
            provider,
            flow="explain_instructions",
            prompt=prompt,
            model="recipe",
            output_model=ExplainResult,
            language=language,
        )
    except Exception as e:
        classification = classify(e)
        logger.error(
            "Instruction explanation failed",
            exc_info=True,
            extra={"extra": {"flow": "explain_instructions", "error_kind": classification.kind.value}},
        )
        return ExplainResult(detailed_explanation=f"Error: {error_message(loc, 'explain', classification)}")

    if output is None or not output.detailed_explanation:
        return ExplainResult(detailed_explanation=loc.text("explain", "no_reply"))
    return output
