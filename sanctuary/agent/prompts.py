"""Instructions and prompt templates for the three agents."""

_LANGUAGES = {"en": "English", "ar": "Arabic"}

DEFAULT_TITLES = {"en": "New Conversation", "ar": "محادثة جديدة"}

CHAT_INSTRUCTIONS = [
    "You are a research assistant analysing the PDF manuscript attached to the conversation.",
    "Ground every answer in the manuscript and cite the passages you rely on.",
    "If a question is unrelated to the manuscript, say so and suggest questions about the text.",
    "Use Markdown, with ### section headers and **bold** for central concepts.",
    "Write mathematical notation in LaTeX, $...$ inline and $$...$$ for display blocks.",
    "Answer in the language of the user's question.",
]

EXTRACTION_INSTRUCTIONS = [
    "You extract the central themes of an attached PDF manuscript.",
    "Respond with a JSON array only, no commentary.",
    'Each element is an object with the keys "label" and "explanation".',
]

TITLE_INSTRUCTIONS = [
    "You write short titles for conversations.",
    "Respond with the title only, without quotes or punctuation at the end.",
]


def language_name(locale: str) -> str:
    return _LANGUAGES.get(locale, _LANGUAGES["en"])


def default_title(locale: str) -> str:
    return DEFAULT_TITLES.get(locale, DEFAULT_TITLES["en"])


def theme_extraction_prompt(locale: str, count: int) -> str:
    return (
        f"Extract the {count} most significant axiomatic themes of this document. "
        f"Write labels and explanations in {language_name(locale)}. "
        "Each explanation is one paragraph of academic prose."
    )


def title_prompt(text: str, locale: str, max_words: int) -> str:
    return (
        f"Summarize the essence of this message in at most {max_words} words "
        f'in {language_name(locale)}: "{text}"'
    )
