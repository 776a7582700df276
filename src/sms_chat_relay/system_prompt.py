DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Please keep your responses concise."


def get_system_prompt(configured: str | None = None) -> str:
    prompt = (configured or "").strip()
    return prompt or DEFAULT_SYSTEM_PROMPT
