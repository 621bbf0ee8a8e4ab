ORIGINAL = "ORIGINAL"

LANGUAGE_NAMES = {
    "en": "English",
    "hi": "Hindi",
    "pa": "Punjabi",
    "ar": "Arabic",
    "fr": "French",
    "es": "Spanish",
    "ta": "Tamil",
    "te": "Telugu",
    "bn": "Bengali",
    "mr": "Marathi",
    "gu": "Gujarati",
    "ru": "Russian",
    "ko": "Korean",
    "ml": "Malayalam",
    "nl": "Dutch",
    "ur": "Urdu",
    "ja": "Japanese",
    "zh": "Chinese (Simplified)",
}

TRANSLATE_TEMPLATE = (
    "You are a professional book translator. Translate the given text to {language}. "
    "Maintain all formatting including markdown syntax (# headers, ** bold, etc.), "
    "paragraph breaks, and structure. Preserve the literary style and tone. "
    "Only return the translated text, nothing else."
)

IMAGE_PROMPT_TEMPLATE = (
    "Based on this book excerpt, create a detailed, vivid image prompt suitable for "
    "AI image generation. The prompt should capture the key visual elements, mood, "
    "and atmosphere. Keep it under 100 words and focus on visual details:\n\n{excerpt}"
)

CHAT_TEMPLATE = (
    'You are a helpful reading assistant for the book "{title}".\n'
    "Your role is to:\n"
    "- Explain complex concepts and passages\n"
    "- Provide summaries when asked\n"
    "- Answer questions about the book content\n"
    "- Help readers understand context and meaning\n"
    "- Keep responses clear, concise, and educational"
)

IMAGE_EXCERPT_CHARS = 1000


def language_name(code: str) -> str:
    """Human name for a language code; unknown codes are passed through."""
    return LANGUAGE_NAMES.get(code, code)


def is_supported_language(code: str) -> bool:
    return code == ORIGINAL or code in LANGUAGE_NAMES


class PromptBuilder:
    """Builds the instructions sent with each kind of model request."""

    def translation_system_prompt(self, target_language: str) -> str:
        return TRANSLATE_TEMPLATE.format(language=language_name(target_language))

    def image_prompt_request(self, text: str) -> str:
        return IMAGE_PROMPT_TEMPLATE.format(excerpt=text[:IMAGE_EXCERPT_CHARS])

    def chat_system_prompt(self, book_title: str, book_context: str | None = None) -> str:
        prompt = CHAT_TEMPLATE.format(title=book_title or "this book")
        if book_context:
            prompt += f"\n\nHere's some context from the book:\n{book_context}"
        return prompt
