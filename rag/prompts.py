"""System and user prompts for grounded question answering."""

# ---------------------------------------------------------------------------
# System instruction: first message of every conversation
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = (
    "Read the context provided by the user and answer their question. If the "
    "question cannot be answered based on the context alone or the context does "
    "not explicitly say the answer to the question, respond 'Sorry I had trouble "
    "answering this question, based on the information I found.'"
)

# ---------------------------------------------------------------------------
# Grounded Q&A: retrieved chunk as context, raw user query as question
# ---------------------------------------------------------------------------

QA_TEMPLATE = """\
Context: "{context}"

Question: "{question}"
"""


def build_grounded_prompt(context: str, question: str) -> str:
    """Interpolate retrieved context and the user's question into QA_TEMPLATE."""
    return QA_TEMPLATE.format(context=context, question=question)
