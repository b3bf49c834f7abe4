DEFAULT_RUN_RETRIES = 3
DEFAULT_HTTP_TIMEOUT = 30.0

DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-latest"

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant"

PREPARE_STEP_KEY = "prepare-workflow"
