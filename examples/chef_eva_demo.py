"""Minimal demonstration of the Chef Eva chat and recipe flows."""

from kitchen_core.api.service import chat_with_eva, generate_recipe, get_quota

if __name__ == "__main__":
    recipe = generate_recipe({"ingredients": "chicken, rice, spinach", "language": "English"})
    print("Recipe:", recipe["recipeName"])
    print(recipe["instructions"])

    question = "How do I keep the rice from turning mushy?"
    reply = chat_with_eva(text=question, language="English")
    print("User:", question)
    print("Chef Eva:", reply["response"])
    print("Quota:", get_quota())
