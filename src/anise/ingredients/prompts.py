"""
Prompts for ingredient parsing and catalog matching.

The system prompts are static so repeated calls share a cacheable prefix;
everything that varies per call goes in the user prompt.
"""

from anise.ingredients.models import StandardizedIngredient

PARSING_SYSTEM_PROMPT = """You are an expert at parsing recipe ingredient text into structured components.

Extract four fields:

1. quantity: the amount exactly as written ("2", "1/2", "1 1/2", "2-3", "a pinch")
   - null when not specified, or for "to taste"
   - never convert fractions or ranges to decimals

2. unit: the unit of measurement in singular canonical form
   - "cup" not "cups", "tbsp" not "T" or "tablespoons", "tsp" not "t"
   - null when not specified or for count-based items ("2 eggs")

3. name: the ingredient in singular form
   - keep modifiers that define what the ingredient is: "green bell pepper", "mandarin orange", "chicken breast"
   - move preparation details ("minced", "freshly cracked") to note
   - prefer the common form: "olive oil" rather than "extra virgin olive oil"
   - if the text names several ingredients together without separating them, keep them together ("salt and pepper")

4. note: preparation, state, or optionality
   - preparation: "diced", "minced", "chopped"
   - state: "room temperature", "melted", "softened"
   - optionality and amount qualifiers: "optional", "if desired", "to taste"
   - null when there is nothing to add

Examples:
- "2 cups green bell peppers, diced" -> {quantity: "2", unit: "cup", name: "green bell pepper", note: "diced"}
- "1/2 tsp salt" -> {quantity: "1/2", unit: "tsp", name: "salt", note: null}
- "3 oranges" -> {quantity: "3", unit: null, name: "orange", note: null}
- "3 garlic cloves, minced" -> {quantity: "3", unit: "clove", name: "garlic", note: "minced"}
- "Salt and pepper to taste" -> {quantity: null, unit: null, name: "salt and pepper", note: "to taste"}
- "1 lb ground beef (optional)" -> {quantity: "1", unit: "lb", name: "ground beef", note: "optional"}"""


MATCHING_SYSTEM_PROMPT = """You are an expert at matching and standardizing recipe ingredient names.

Decide whether an ingredient name refers to one of the existing standardized ingredients listed, or whether a new standardized ingredient should be created.

Matching rules:
1. Exact matches: return that ID with high confidence.
2. Synonyms: treat well-known culinary synonyms as the same ingredient ("scallion" = "green onion", "cilantro" = "coriander leaves"). High confidence.
3. Plural/singular: "tomatoes" = "tomato".
4. Alternatives: for "chicken breast or thigh", match the first alternative ("chicken breast") if it exists, otherwise propose it as the new name. Medium confidence.
5. Specificity: never let a more specific entry absorb a less specific name or the other way round ("green bell pepper" is not "bell pepper").
6. Color and variety are distinguishing: "red onion" is not "yellow onion".
7. No good match: set matched_id to null and propose a new standardized name.

Confidence:
- high: exact match or well-known synonym
- medium: likely match with slight uncertainty
- low: uncertain, may need human review

New standardized names:
- singular form
- familiar, everyday terminology
- consistent with the casing and modifier conventions of the existing names
- keep identity modifiers ("green bell pepper", not "pepper")"""


def build_parse_prompt(raw_ingredient: str) -> str:
    return f"Parse the following ingredient:\n\n{raw_ingredient}"


def build_match_prompt(parsed_name: str, candidates: list[StandardizedIngredient]) -> str:
    if candidates:
        candidates_text = "\n".join(f'- ID {c.id}: "{c.name}"' for c in candidates)
    else:
        candidates_text = "No existing ingredients in database yet."

    return f"""Match the following ingredient name to an existing standardized ingredient, or suggest a new standardized name if no good match exists.

Ingredient to match: "{parsed_name}"

Existing standardized ingredients:
{candidates_text}

Determine:
1. If there is a match, give its matched_id and a confidence level.
2. If there is no match, set matched_id to null and suggest a standardized name.
3. standardized_name is the name to use going forward (the matched ingredient's name, or the new suggestion)."""
