"""All magic values live here — no inline literals anywhere else."""

# Remote service
DEFAULT_API_BASE = "https://api.visionati.com"
SUBMIT_PATH = "/api/fetch"
API_KEY_HEADER = "X-API-Key"
API_KEY_SCHEME = "Token"

# Timing (seconds) and round budgets.
# 150 rounds × 2 s ≈ 5 min for long-lived callers; the upload hook caps at
# 10 rounds (~20 s) to fit a 30 s execution ceiling. Normal jobs resolve in 4-5.
HTTP_TIMEOUT: float = 30.0
CONNECTION_TEST_TIMEOUT: float = 15.0
POLL_INTERVAL: float = 2.0
MAX_POLL_ROUNDS = 150
UPLOAD_MAX_ROUNDS = 10

# A job is abandoned after this many undecodable poll bodies in a row
MALFORMED_RESPONSE_LIMIT = 5

# Resource validation
MAX_FILE_SIZE = 20 * 1024 * 1024
SUPPORTED_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
)

# Job status markers reported by the poll endpoint
STATUS_COMPLETED = "completed"
STATUS_IN_PROGRESS = ("queued", "processing")

# Request defaults
DEFAULT_FEATURES = ("descriptions",)
DEFAULT_ROLE = "general"
DEFAULT_BACKEND = "gemini"
DEFAULT_LANGUAGE = "English"
ALT_TEXT_MAX_LENGTH = 125
TRUNCATE_MIN_KEEP = 0.6
TRUNCATE_STRIP_CHARS = ".,;:!? "

# Credit exhaustion has no error code upstream, only these message fragments
CREDIT_ERROR_MARKERS = ("no credits", "insufficient credits")
ACCESS_DENIED_MARKER = "Access denied"

# Log messages
LOG_SUBMIT_ACCEPTED = "Submitted %s → %s"
LOG_SUBMIT_IMMEDIATE = "Submitted %s → immediate result"
LOG_SUBMIT_FAILED = "Submit failed for %s: %s"
LOG_POLL_TRANSPORT = "Poll %s transport failure: %s"
LOG_POLL_MALFORMED = "Poll %s returned invalid JSON (%d in a row)"
LOG_POLL_PENDING = "Poll %s still %s"
LOG_POLL_RESOLVED = "Poll %s resolved after round %d"
LOG_POLL_FAILED = "Poll %s failed: %s"
LOG_ROUND_DONE = "Round %d done — %d pending"
LOG_POLL_TIMEOUT = "Poll %s timed out after %d rounds"
LOG_CACHE_HIT = "Encoder cache hit for %s"

# Error details
MSG_NO_API_KEY = "No API key configured."
MSG_FILE_NOT_FOUND = "Image file not found: %s"
MSG_UNSUPPORTED_FORMAT = (
    "Unsupported image format: %s. Supported formats: JPEG, PNG, GIF, WebP, BMP."
)
MSG_FILE_TOO_LARGE = "Image file is too large (%.1fMB). Maximum size is 20MB."
MSG_FILE_UNREADABLE = "Cannot read file: %s"
MSG_FILE_EMPTY = "Image file is empty: %s"
MSG_FILE_READ_ERROR = "Failed to read image file."
MSG_REQUEST_FAILED = "API request failed: %s"
MSG_CONNECTION_FAILED = "Connection failed: %s"
MSG_INVALID_JSON = "Invalid JSON response from API."
MSG_POLL_INVALID_JSON = "API returned invalid JSON."
MSG_PERSISTENT_INVALID = (
    "API returned invalid responses 5 times in a row. "
    "A proxy or firewall may be interfering."
)
MSG_HTTP_ERROR = "API returned HTTP %d."
MSG_NO_RESULTS = "Analysis returned no results."
MSG_NO_RESULTS_DETAIL = "Analysis returned no results: %s"
MSG_NO_DESCRIPTION = "No description returned from the API."
MSG_UNEXPECTED_SUBMIT = "Unexpected API response format."
MSG_UNEXPECTED_POLL = "Unexpected API response during polling."
MSG_INVALID_HANDLE = "Invalid poll handle: %s"
MSG_TIMEOUT = (
    "Analysis timed out. The image may be too large or the service is busy. "
    "Please try again."
)

# CLI
MSG_CLI_STARTING = "Generating %s for %s"
MSG_CLI_FIELD_OK = "%s: %s"
MSG_CLI_FIELD_FAIL = "%s failed: %s"
MSG_CLI_CREDITS = "%d credits remaining"
MSG_CLI_OUT_OF_CREDITS = "Out of credits. Add more at api.visionati.com to continue."

# Catalogues
ROLES = {
    "alttext": "Alt Text",
    "artist": "Artist",
    "caption": "Caption",
    "comedian": "Comedian",
    "critic": "Critic",
    "ecommerce": "Ecommerce",
    "general": "General",
    "inspector": "Inspector",
    "promoter": "Promoter",
    "prompt": "Prompt",
    "realtor": "Realtor",
    "tweet": "Tweet",
}

BACKENDS = {
    "bakllava": "BakLLaVA",
    "claude": "Claude",
    "gemini": "Gemini",
    "grok": "Grok",
    "jinaai": "Jina AI",
    "llava": "LLaVA",
    "openai": "OpenAI",
}

LANGUAGES = (
    "Abkhazian", "Afar", "Afrikaans", "Albanian", "Amharic", "Arabic",
    "Aragonese", "Armenian", "Assamese", "Aymara", "Azerbaijani", "Bashkir",
    "Basque", "Bengali (Bangla)", "Bhutani", "Bihari", "Bislama", "Breton",
    "Bulgarian", "Burmese", "Byelorussian (Belarusian)", "Cambodian", "Catalan",
    "Cherokee", "Chewa", "Chinese", "Chinese (Simplified)",
    "Chinese (Traditional)", "Corsican", "Croatian", "Czech", "Danish",
    "Divehi", "Dutch", "Edo", "English", "Esperanto", "Estonian", "Faeroese",
    "Farsi", "Fiji", "Finnish", "French", "Frisian", "Fulfulde", "Galician",
    "Gaelic (Scottish)", "Gaelic (Manx)", "Georgian", "German", "Greek",
    "Greenlandic", "Guarani", "Gujarati", "Haitian Creole", "Hausa", "Hawaiian",
    "Hebrew", "Hindi", "Hungarian", "Icelandic", "Ido", "Igbo", "Indonesian",
    "Interlingua", "Interlingue", "Inuktitut", "Inupiak", "Irish", "Italian",
    "Japanese", "Javanese", "Kannada", "Kanuri", "Kashmiri", "Kazakh",
    "Kinyarwanda (Ruanda)", "Kirghiz", "Kirundi (Rundi)", "Konkani", "Korean",
    "Kurdish", "Laothian", "Latin", "Latvian (Lettish)",
    "Limburgish (Limburger)", "Lingala", "Lithuanian", "Macedonian", "Malagasy",
    "Malay", "Malayalam", "Maltese", "Maori", "Marathi", "Moldavian",
    "Mongolian", "Nauru", "Nepali", "Norwegian", "Occitan", "Oriya",
    "Oromo (Afaan Oromo)", "Papiamentu", "Pashto (Pushto)", "Polish",
    "Portuguese", "Punjabi", "Quechua", "Rhaeto-Romance", "Romanian", "Russian",
    "Samoan", "Sangro", "Sanskrit", "Serbian", "Serbo-Croatian", "Sesotho",
    "Setswana", "Shona", "Sichuan Yi", "Sindhi", "Sinhalese", "Siswati",
    "Slovak", "Slovenian", "Somali", "Spanish", "Sundanese",
    "Swahili (Kiswahili)", "Swedish", "Syriac", "Tagalog", "Tajik", "Tamazight",
    "Tamil", "Tatar", "Telugu", "Thai", "Tibetan", "Tigrinya", "Tonga",
    "Tsonga", "Turkish", "Turkmen", "Twi", "Uighur", "Ukrainian", "Urdu",
    "Uzbek", "Venda", "Vietnamese", "Volapük", "Wallon", "Welsh", "Wolof",
    "Xhosa", "Yiddish yi", "Yoruba", "Zulu",
)
