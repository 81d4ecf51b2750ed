import json

import pytest

from kitchen_core.domain.exceptions import ApiError, PromptTemplateError, SchemaValidationError, ValidationError
from kitchen_core.domain.models import CompletionResult
from kitchen_core.flows.base import parse_input, parse_structured_reply
from kitchen_core.flows.explain_instructions import ExplainRequest, ExplainResult, explain_instructions
from kitchen_core.flows.generate_pro_menu import MenuRequest, generate_pro_menu
from kitchen_core.flows.generate_recipe import RecipeRequest, RecipeResult, generate_recipe
from kitchen_core.flows.improve_instruction import ImproveRequest, improve_instruction
from kitchen_core.flows.refine_recipe import RefineRequest, refine_recipe


class FakeProvider:
    name = "fake"

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    def generate(self, req):
        self.requests.append(req)
        item = self.replies.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, dict):
            item = json.dumps(item)
        return CompletionResult(provider=self.name, model=req.model, text=item)


BUSY = ApiError(code="API_ERROR", message="[503 Service Unavailable] overloaded", http_status=503)


# ---- parse_structured_reply ----


def test_parse_structured_reply_strips_code_fence():
    reply = '```json\n{"detailedExplanation": "Stir gently."}\n```'
    assert parse_structured_reply(reply, ExplainResult).detailed_explanation == "Stir gently."


def test_parse_structured_reply_reports_missing_fields():
    with pytest.raises(SchemaValidationError) as exc:
        parse_structured_reply('{"recipeName": "Omelette"}', RecipeResult)
    assert "Field required" in exc.value.detail


# ---- generate_recipe ----


def test_generate_recipe_without_ingredients():
    provider = FakeProvider()
    res = generate_recipe(provider, RecipeRequest(ingredients="  "))
    assert res.recipe_name == "Input Error: No Ingredients"
    assert res.notes == "Please list the ingredients you have available."
    assert provider.requests == []


def test_generate_recipe_success_with_dish_type():
    provider = FakeProvider(
        {
            "recipeName": "Tomato Egg Soup",
            "providedIngredients": ["eggs", "tomatoes"],
            "additionalIngredients": ["salt"],
            "instructions": "1. Boil. 2. Whisk.",
        }
    )
    request = RecipeRequest.model_validate({"ingredients": "eggs, tomatoes", "preferredDishType": "Soup"})
    res = generate_recipe(provider, request)

    assert res.recipe_name == "Tomato Egg Soup"
    assert res.to_dict()["providedIngredients"] == ["eggs", "tomatoes"]
    req = provider.requests[0]
    assert req.model == "recipe"
    assert req.response_format == "json"
    assert "'Soup' category" in req.current_turn.text
    assert "Assess Versatility" not in req.current_turn.text


def test_generate_recipe_fills_missing_instructions():
    provider = FakeProvider(
        {"recipeName": "Salad", "providedIngredients": [], "additionalIngredients": [], "instructions": ""}
    )
    res = generate_recipe(provider, RecipeRequest(ingredients="lettuce"))
    assert res.instructions == "No instructions applicable. (Generated)"


def test_generate_recipe_empty_reply():
    res = generate_recipe(FakeProvider(""), RecipeRequest(ingredients="rice"))
    assert res.recipe_name == "AI Error: No Response"
    assert res.instructions == "No instructions applicable. (AI Error)"


def test_generate_recipe_busy_is_localized():
    res = generate_recipe(FakeProvider(BUSY), RecipeRequest(ingredients="arroz", language="Spanish"))
    assert res.recipe_name == "IA Ocupada"
    assert res.provided_ingredients == []


def test_generate_recipe_generic_and_schema_errors():
    res = generate_recipe(FakeProvider(RuntimeError("boom")), RecipeRequest(ingredients="rice"))
    assert res.recipe_name == "AI Error"
    assert res.notes == "AI Error: boom. Please check your input or try again later."
    assert res.instructions == "No instructions available due to error."

    res = generate_recipe(FakeProvider('{"recipeName": "X"}'), RecipeRequest(ingredients="rice"))
    assert res.notes.startswith("Input Error: ")
    assert "Field required" in res.notes


def test_generate_recipe_template_error(monkeypatch):
    def broken(*a, **kw):
        raise PromptTemplateError("eq", template="generate_recipe")

    monkeypatch.setattr("kitchen_core.flows.generate_recipe.render_prompt", broken)
    res = generate_recipe(FakeProvider(), RecipeRequest(ingredients="rice"))
    assert res.recipe_name == "Template Error"
    assert "'eq'" in res.notes


# ---- refine_recipe ----


def _refine_request(**kw):
    base = dict(
        original_recipe_name="Carbonara",
        provided_ingredients=["pasta", "eggs"],
        original_additional_ingredients=["guanciale", "pecorino"],
        unavailable_additional_ingredients=["guanciale"],
        original_instructions="1. Boil pasta. 2. Mix.",
    )
    base.update(kw)
    return RefineRequest(**base)


def test_refine_recipe_missing_input_is_localized():
    res = refine_recipe(FakeProvider(), RefineRequest(language="Hindi"))
    assert res.refined_recipe_name == "शोधन विफल: इनपुट गुम है"


def test_refine_recipe_success_fills_defaults():
    provider = FakeProvider({"refinedRecipeName": "Bacon Carbonara", "refinedIngredients": "- pasta\n- bacon"})
    res = refine_recipe(provider, _refine_request())
    assert res.refined_recipe_name == "Bacon Carbonara"
    assert res.refined_instructions == "Instructions unavailable."
    assert res.feasibility_notes == "No specific notes provided."
    assert "- guanciale" in provider.requests[0].current_turn.text


def test_refine_recipe_unexplained_failure_gets_standard_notes():
    provider = FakeProvider({"refinedRecipeName": "Refinement Failed", "feasibilityNotes": "Not possible."})
    res = refine_recipe(provider, _refine_request())
    assert res.feasibility_notes.startswith("Refinement is not possible")

    provider = FakeProvider({"refinedRecipeName": "Refinement Failed", "feasibilityNotes": "Guanciale is essential."})
    res = refine_recipe(provider, _refine_request())
    assert res.feasibility_notes == "Guanciale is essential."


def test_refine_recipe_error_titles():
    res = refine_recipe(FakeProvider(RuntimeError("boom")), _refine_request())
    assert res.refined_recipe_name == "AI Error (English)"
    assert res.feasibility_notes == "AI Error: boom"

    res = refine_recipe(FakeProvider(BUSY), _refine_request())
    assert res.refined_recipe_name == "AI Busy"

    res = refine_recipe(FakeProvider(""), _refine_request(language="Spanish"))
    assert res.refined_recipe_name == "Error de IA: Sin Respuesta (Spanish)"


# ---- generate_pro_menu ----


def _menu_request(**kw):
    base = dict(ingredients="beef, carrots, apples", event_theme="Harvest Dinner", num_guests=6, courses=["main", "dessert"])
    base.update(kw)
    return MenuRequest(**base)


def test_menu_input_checks():
    provider = FakeProvider()
    res = generate_pro_menu(provider, _menu_request(ingredients=""))
    assert res.menu_title == "Input Error: No Ingredients"
    res = generate_pro_menu(provider, _menu_request(courses=[]))
    assert res.menu_title == "Input Error: No Courses Selected"
    assert res.num_guests == 6
    assert provider.requests == []


def test_menu_rejects_non_positive_guests():
    with pytest.raises(ValidationError) as exc:
        parse_input(MenuRequest, {"ingredients": "x", "eventTheme": "y", "numGuests": 0, "courses": ["main"]})
    assert exc.value.code == "INVALID_INPUT"


def test_menu_success_adds_default_notes():
    provider = FakeProvider(
        {
            "menuTitle": "Autumn Feast",
            "eventTheme": "Harvest Dinner",
            "numGuests": 6,
            "courses": [
                {"type": "main", "recipeName": "Beef Stew", "ingredients": "- beef", "instructions": "1. Simmer."},
                {"type": "dessert", "recipeName": "Apple Crumble", "ingredients": "- apples", "instructions": "1. Bake."},
            ],
        }
    )
    res = generate_pro_menu(provider, _menu_request())
    assert len(res.courses) == 2
    assert res.chef_notes.startswith("Menu generated successfully")
    assert provider.requests[0].model == "pro-menu"
    assert res.to_dict()["courses"][0]["recipeName"] == "Beef Stew"


def test_menu_success_title_without_courses_is_failure():
    provider = FakeProvider({"menuTitle": "Autumn Feast", "eventTheme": "Harvest", "numGuests": 6, "courses": []})
    res = generate_pro_menu(provider, _menu_request())
    assert res.menu_title == "Menu Generation Failed (English)"
    assert res.chef_notes.startswith("Could not generate menu")


def test_menu_failure_title_with_short_notes():
    provider = FakeProvider(
        {"menuTitle": "Menu Generation Failed", "eventTheme": "Harvest", "numGuests": 6, "courses": [], "chefNotes": "no"}
    )
    res = generate_pro_menu(provider, _menu_request())
    assert res.chef_notes.startswith("Could not generate menu")


def test_menu_errors():
    res = generate_pro_menu(FakeProvider(RuntimeError("Cannot create menu from these items")), _menu_request())
    assert res.menu_title == "Menu Generation Failed (English)"
    assert res.chef_notes.startswith("Could not generate menu")

    res = generate_pro_menu(FakeProvider(BUSY), _menu_request())
    assert res.menu_title == "AI Busy"

    res = generate_pro_menu(FakeProvider(""), _menu_request(language="Spanish"))
    assert res.menu_title == "Error de IA: Sin Respuesta (Spanish)"
    assert res.event_theme == "Harvest Dinner"


# ---- explain_instructions / improve_instruction ----


def test_explain_instructions():
    provider = FakeProvider({"detailedExplanation": "First, heat the pan gently."})
    res = explain_instructions(provider, ExplainRequest(recipe_name="Omelette", original_instructions="Cook eggs."))
    assert res.detailed_explanation == "First, heat the pan gently."

    res = explain_instructions(FakeProvider(), ExplainRequest(original_instructions=" "))
    assert res.detailed_explanation == "No instructions provided to explain."


def test_explain_instructions_failures():
    res = explain_instructions(FakeProvider(BUSY), ExplainRequest(original_instructions="Cook eggs."))
    assert res.detailed_explanation == "Error: The AI instructor is currently busy! Please try again in a moment."

    res = explain_instructions(FakeProvider(""), ExplainRequest(original_instructions="Cook eggs."))
    assert res.detailed_explanation.startswith("Error: The AI instructor didn't provide")


def test_improve_instruction():
    provider = FakeProvider({"improvedInstructions": "1. Crack the eggs into a bowl."})
    res = improve_instruction(provider, ImproveRequest(recipe_name="Omelette", original_instructions="eggs pan"))
    assert res.to_dict() == {"improvedInstructions": "1. Crack the eggs into a bowl."}


def test_improve_instruction_propagates_errors():
    with pytest.raises(ApiError):
        improve_instruction(FakeProvider(BUSY), ImproveRequest(recipe_name="x", original_instructions="y"))
    with pytest.raises(SchemaValidationError):
        improve_instruction(FakeProvider(""), ImproveRequest(recipe_name="x", original_instructions="y"))
