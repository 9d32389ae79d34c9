import google.generativeai as genai
from flask import current_app

from pipeline import InternalError

CODE_INSTRUCTION = (
    "You are a code generator. You must answer only in markdown code snippets. "
    "Use code comments for explanations."
)


def init_app(app):
    api_key = app.config.get("GEMINI_API_KEY")
    if api_key:
        genai.configure(api_key=api_key)
        # CRITICAL: never log the key itself
        app.logger.info(f"✅ Gemini API key loaded (length: {len(api_key)})")
    else:
        app.logger.warning("⚠️ GEMINI_API_KEY not set, text generation will fail")


def model_name():
    return current_app.config.get("GEMINI_MODEL", "gemini-1.5-flash")


def build_code_prompt(messages):
    lines = "\n".join(f"{msg['role']}: {msg['content']}" for msg in messages)
    return f"{CODE_INSTRUCTION}\n\n{lines}"


def build_conversation_prompt(messages):
    return "\n".join(
        f"{'User' if msg['role'] == 'user' else 'Assistant'}: {msg['content']}"
        for msg in messages
    )


def generate_text(prompt, model=None):
    """Single-shot text completion, no retries"""
    if not current_app.config.get("GEMINI_API_KEY"):
        raise InternalError("Gemini API Key not configured")

    generative_model = genai.GenerativeModel(model or model_name())
    response = generative_model.generate_content(prompt)
    # .text raises ValueError when the candidate was blocked
    text = response.text
    if not text:
        raise ValueError("Empty response from Gemini")
    return text
