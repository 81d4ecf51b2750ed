"""改写菜谱步骤，使其更清晰易懂。

与其他 flow 不同，这里不做本地化兜底，失败直接抛出 BusinessError 子类。
"""

from kitchen_core.domain.exceptions import SchemaValidationError
from kitchen_core.flows.base import CamelModel, run_structured
from kitchen_core.prompts import render_prompt
from kitchen_core.providers.base import ProviderClient


class ImproveRequest(CamelModel):
    recipe_name: str
    original_instructions: str


class ImproveResult(CamelModel):
    improved_instructions: str


def improve_instruction(provider: ProviderClient, request: ImproveRequest) -> ImproveResult:
    prompt = render_prompt(
        "improve_instruction",
        recipe_name=request.recipe_name,
        original_instructions=request.original_instructions,
    )
    output = run_structured(
        provider,
        flow="improve_instruction",
        prompt=prompt,
        model="recipe",
        output_model=ImproveResult,
    )
    if output is None:
        raise SchemaValidationError("improvedInstructions: empty reply from model")
    return output
