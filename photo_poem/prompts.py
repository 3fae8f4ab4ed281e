from photo_poem.schema_models import GenerationRequest, ResolvedParameters


POET_INSTRUCTION = """
You are a creative multilingual poet. You write original poems inspired by photographs.
Always answer with a structured object holding exactly two fields: the poem's title and the poem itself.
Never wrap the poem in commentary or explanations.
"""


DECIDER_INSTRUCTION = """
You are a poetry editor. Look at the provided photo and decide which tone and which poetic form
(e.g., haiku, sonnet, ballad, free verse) would best capture it.
Answer with a structured object holding exactly two fields: tone and structure.
"""


OPENING = "You are a creative multilingual poet. Generate a poem inspired by the provided photo."
TONE_CLAUSE = "The poem should have a {tone} tone."
AUTO_TONE_CLAUSE = "Choose an appropriate tone based on the image content (e.g., reflective, joyful, melancholic, mysterious)."
AUTO_TONE_WITH_DESCRIPTION_CLAUSE = (
    "Choose an appropriate tone based on the image content and the description "
    "(e.g., reflective, joyful, melancholic, mysterious)."
)
DESCRIPTION_CLAUSE = "Use this description of the scene alongside the photo: {description}"
PHOTO_ONLY_CLAUSE = "Base the poem solely on the photo."
LANGUAGE_CLAUSE = "The poem must be written in {language}."
STRUCTURE_CLAUSE = "The poem should be written as {structure}."
TITLE_IN_LANGUAGE_CLAUSE = "Generate a suitable title for the poem, also in {language}."
TITLE_CLAUSE = "Generate a suitable title for the poem."
OUTPUT_CLAUSE = "Your output must be in the specified JSON format, containing the title and the poem."

DECIDE_PROMPT = "Decide the tone and the poetic structure for a poem inspired by this photo."


def render_prompt(params: ResolvedParameters) -> str:
    """
    Builds the instruction text for the poem request.

    Each optional parameter contributes a whole clause only when it is set.
    The photo is not part of the text; it travels as a separate media part.
    """
    clauses = [OPENING]

    if params.language:
        clauses.append(LANGUAGE_CLAUSE.format(language=params.language))

    if params.structure:
        clauses.append(STRUCTURE_CLAUSE.format(structure=params.structure))

    if params.tone:
        clauses.append(TONE_CLAUSE.format(tone=params.tone))
    elif params.description:
        clauses.append(AUTO_TONE_WITH_DESCRIPTION_CLAUSE)
    else:
        clauses.append(AUTO_TONE_CLAUSE)

    if params.description:
        clauses.append(DESCRIPTION_CLAUSE.format(description=params.description))
    else:
        clauses.append(PHOTO_ONLY_CLAUSE)

    if params.language:
        clauses.append(TITLE_IN_LANGUAGE_CLAUSE.format(language=params.language))
    else:
        clauses.append(TITLE_CLAUSE)
    clauses.append(OUTPUT_CLAUSE)

    return "\n\n".join(clauses)


def build_generation_request(photo_data_uri: str, params: ResolvedParameters) -> GenerationRequest:
    return GenerationRequest(prompt_text=render_prompt(params), photo_data_uri=photo_data_uri)
