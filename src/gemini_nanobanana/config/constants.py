"""Centralized constants for gemini-nanobanana-mcp."""
#Canonical naming for this server
CANONICAL_ID="gemini-nanobanana-mcp"
CANONICAL_DISPLAY="Gemini Nanobanana MCP"
DEFAULT_ENDPOINT="https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash-image-preview:generateContent"
#API timeouts in seconds
class Timeouts:
    GEMINI_REQUEST=60.0
#Retry budget for the Gemini request pipeline
class Retries:
    MAX_RETRIES=3
    BASE_DELAY=1.0
    JITTER=1.0
    RETRYABLE_STATUS={429}
#Input and output limits
class Limits:
    PROMPT_MIN_CHARS=1
    PROMPT_MAX_CHARS=2000
    COMPOSE_MIN_IMAGES=2
    COMPOSE_MAX_IMAGES=10
    MAX_IMAGE_BYTES=20*1024*1024
    MAX_BASE64_CHARS=-(-MAX_IMAGE_BYTES*4//3)
    ERROR_BODY_CHARS=500
    LOG_PROMPT_CHARS=100
#Accepted input MIME types
ALLOWED_MIME_TYPES=("image/png","image/jpeg","image/jpg","image/webp","image/gif")
DEFAULT_MIME_TYPE="image/png"
#MIME type to file extension for explicit save paths
MIME_EXTENSIONS={"image/png":".png","image/jpeg":".jpg","image/jpg":".jpg","image/webp":".webp","image/gif":".gif"}
STYLE_TRANSFER_PROMPT="Apply the style of the second image to the first image while preserving the original content"
