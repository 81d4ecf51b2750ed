"""根据用户已有食材生成菜谱。"""

from typing import List, Optional

from kitchen_core.domain.error_classifier import classify
from kitchen_core.flows.base import CamelModel, error_title_notes, run_structured
from kitchen_core.i18n import get_localizer
from kitchen_core.infrastructure.logging.logger import logger
from kitchen_core.prompts import render_prompt
from kitchen_core.providers.base import ProviderClient


class RecipeRequest(CamelModel):
    ingredients: str  # 逗号分隔
    preferred_dish_type: Optional[str] = None
    language: Optional[str] = None


class RecipeResult(CamelModel):
    recipe_name: str
    provided_ingredients: List[str]
    additional_ingredients: List[str]
    instructions: str
    alternative_dish_types: Optional[List[str]] = None
    notes: Optional[str] = None


def generate_recipe(provider: ProviderClient, request: RecipeRequest) -> RecipeResult:
    """生成菜谱；所有失败都转成本地化的 RecipeResult，不向外抛出。"""

    language = request.language or "English"
    loc = get_localizer(language)

    if not request.ingredients or not request.ingredients.strip():
        return RecipeResult(
            recipe_name=loc.text("recipe", "no_ingredients_title"),
            provided_ingredients=[],
            additional_ingredients=[],
            instructions=loc.text("recipe", "default_instructions"),
            notes=loc.text("recipe", "no_ingredients_notes"),
            alternative_dish_types=[],
        )

    try:
        prompt = render_prompt("generate_recipe", **_prompt_params(request, language))
        output = run_structured(
            provider,
            flow="generate_recipe",
            prompt=prompt,
            model="recipe",
            output_model=RecipeResult,
            language=language,
        )
    except Exception as e:
        classification = classify(e)
        logger.error(
            "Recipe generation failed",
            exc_info=True,
            extra={"extra": {"flow": "generate_recipe", "error_kind": classification.kind.value}},
        )
        title, notes = error_title_notes(loc, "recipe", classification)
        return RecipeResult(
            recipe_name=title,
            provided_ingredients=[],
            additional_ingredients=[],
            instructions=loc.text("recipe", "fail_instructions"),
            notes=notes,
            alternative_dish_types=[],
        )

    if output is None:
        return RecipeResult(
            recipe_name=loc.text("recipe", "ai_error_title"),
            provided_ingredients=[],
            additional_ingredients=[],
            instructions=loc.text("recipe", "default_instructions") + " (AI Error)",
            notes=loc.text("recipe", "ai_error_notes"),
            alternative_dish_types=[],
        )
    if not output.instructions:
        output.instructions = loc.text("recipe", "default_instructions") + " (Generated)"
    return output


def _prompt_params(request: RecipeRequest, language: str) -> dict:
    dish_type = (request.preferred_dish_type or "").strip()
    if dish_type:
        dish_type_line = f"User's Preferred Dish Type: {dish_type}"
        dish_type_step = (
            f"Prioritize creating a recipe that fits the '{dish_type}' category, "
            "using the core ingredients."
        )
        versatility_step = ""
    else:
        dish_type_line = ""
        dish_type_step = (
            "Determine the most suitable type of dish based on the core ingredients "
            "(e.g., stir-fry, soup, baked dish, salad, pasta dish). Generate a suitable recipe name."
        )
        versatility_step = (
            "6.  **Assess Versatility:** After devising the primary recipe, consider if the CORE "
            f"ingredients ({request.ingredients}) could *also* be used to make other *distinctly "
            "different types* of dishes. If yes, list these alternative dish types (e.g., \"Soup\", "
            "\"Salad\", \"Baked Dish\") in 'alternativeDishTypes'. Only suggest plausible alternatives; "
            "omit the field if the ingredients are not versatile."
        )
    return {
        "language": language,
        "ingredients": request.ingredients,
        "dish_type_line": dish_type_line,
        "dish_type_step": dish_type_step,
        "versatility_step": versatility_step,
    }
