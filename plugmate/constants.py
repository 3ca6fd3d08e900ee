"""Constants used throughout the plugmate package."""

from pathlib import Path
from colorama import Fore, Style

# Configuration paths
CONFIG_DIR = Path.home() / ".config" / "plugmate"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
LOCAL_CONFIG_NAME = "plugmate.yaml"
CONFIG_ENV_VAR = "PLUGMATE_CONFIG"
OPENAI_API_KEY_ENV_VAR = "OPENAI_API_KEY"

# Plugins live in <base_dir>/plugins
PLUGINS_SUBDIR = "plugins"

# ANSI Color Codes (using colorama)
CLR_RESET = Style.RESET_ALL
CLR_RED = Fore.RED
CLR_BOLD_RED = Style.BRIGHT + Fore.RED
CLR_GREEN = Fore.GREEN
CLR_BOLD_GREEN = Style.BRIGHT + Fore.GREEN
CLR_YELLOW = Fore.YELLOW
CLR_BOLD_YELLOW = Style.BRIGHT + Fore.YELLOW
CLR_BLUE = Fore.BLUE
CLR_BOLD_BLUE = Style.BRIGHT + Fore.BLUE
CLR_MAGENTA = Fore.MAGENTA
CLR_BOLD_MAGENTA = Style.BRIGHT + Fore.MAGENTA
CLR_CYAN = Fore.CYAN
CLR_BOLD_CYAN = Style.BRIGHT + Fore.CYAN
CLR_WHITE = Fore.WHITE
CLR_BOLD_WHITE = Style.BRIGHT + Fore.WHITE
CLR_DIM = Style.DIM

# LLM providers
PROVIDERS = ["auto", "ollama", "openai"]
DEFAULT_PROVIDER = "openai"
DEFAULT_OLLAMA_BASE_URL = "http://127.0.0.1:11434"
DEFAULT_OLLAMA_MODEL = "deepseek-coder-v2:latest"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
OPENAI_SYSTEM_PROMPT = "You are a pragmatic coding assistant."

# HTTP behaviour
DEFAULT_HTTP_TIMEOUT = 60
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY = 2.0
DEFAULT_MAX_RETRY_DELAY = 30.0
OLLAMA_PING_TIMEOUT = 3

# Risk policies and levels
RISK_POLICIES = ["strict", "normal", "off"]
DEFAULT_RISK_POLICY = "normal"
RISK_LOW = "low"
RISK_MEDIUM = "medium"
RISK_HIGH = "high"
DESTRUCTIVE_PLUGIN_MARKERS = ["reset", "delete", "drop", "rm"]

# Session loop
DEFAULT_MAX_STEPS = 4
DEFAULT_DECISION_CACHE_TTL = 180
MAX_PREVIOUS_PROMPTS = 6
HISTORY_RESULT_MAX_LEN = 1500
DESCRIPTION_SUMMARY_MAX_LEN = 80

# Default configuration values
DEFAULT_ENABLE_DEBUG = False
DEFAULT_CONFIRM_TOOLS = False
