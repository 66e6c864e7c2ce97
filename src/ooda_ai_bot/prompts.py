"""Prompts sent to Vectara's generation stage."""

import json

SYSTEM_PROMPT = """You are a research assistant. CRITICAL INSTRUCTION: Your task is to create a 3-4 paragraph summary using relevant information found in the search results.

Rules for content use:
1. Maximum four paragraphs
2. Combine multiple sources if needed
3. Use clear, direct language
4. Reference experts

"""

# Velocity template evaluated by Vectara; $vectaraQueryResults holds the reranked passages.
RESULTS_TEMPLATE = """#foreach( $doc in $vectaraQueryResults )
Title: $doc.document_metadata.title
URL: $doc.document_metadata.url
$doc.text

#end
"""


def get_user_prompt(question: str) -> str:
    """Generate the user-role prompt: retrieved passages followed by the question."""
    return f"{RESULTS_TEMPLATE}\nBased on this content, {question}"


def build_prompt_template(question: str, system_prompt: str = SYSTEM_PROMPT) -> str:
    """Serialize the system/user message pair into Vectara's prompt_template string."""
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": get_user_prompt(question)},
    ]
    return json.dumps(messages)
