"""Core constants for ContextSmith."""

# Gemini defaults
GEMINI_DEFAULT_MODEL = "gemini-2.0-flash"
GEMINI_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# OpenAI-compatible defaults
OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"

# Retry policy for text-generation calls
DEFAULT_MAX_RETRIES = 5
DEFAULT_BASE_DELAY_SECONDS = 2.0

# Context budget defaults
DEFAULT_TOKEN_BUDGET = 8000
DEFAULT_MAX_ITEMS_PER_CATEGORY = 10

# Auditor gates
AUDIT_GLOBAL_THRESHOLD = 12
AUDIT_CATEGORY_THRESHOLD = 8
AUDIT_PREVIEW_CHARS = 320

# Question loop
QUESTION_MAX_RETRIES = 3
SIMILAR_SEARCH_K = 10
VERIFY_MAX_RESULTS = 5

# Path fragments that mark test or mock files
TEST_PATH_MARKERS = (".test.", ".spec.", "__tests__")
MOCK_PATH_MARKER = "mock"
