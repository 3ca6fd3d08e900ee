"""Configuration templates for plugmate."""

CONFIG_TEMPLATE = """\
# config.yaml - plugmate configuration
# Every key is optional; anything left out falls back to the built-in default.
#
# base_dir: Directory that holds the plugins/ folder.
# provider: LLM provider to use. Options: auto, ollama, openai. Default: openai.
#   auto: try the local Ollama server first, fall back to OpenAI.
# ollama / openai: Per-provider endpoint and model settings.
#   openai.api_key may be left empty when OPENAI_API_KEY is set.
# risk_policy: When to ask before running an action. Options: strict, normal, off.
#   strict: always confirm.
#   normal: confirm high-risk actions, or every action when confirm_tools is true.
#   off: confirm only when confirm_tools is true.
# confirm_tools: Ask before every plugin/tool action.
# max_steps: Planning iterations allowed per request.
# decision_cache_ttl: Seconds an identical planner decision is reused.
# http_timeout: Seconds before an LLM request times out.
# max_retries: Extra attempts for transient LLM failures (network, 429, 5xx).
# retry_delay: Initial backoff delay in seconds (doubles on every retry).
# enable_debug: Set to true for verbose debugging output.

base_dir: '{base_dir}'

provider: openai

ollama:
  base_url: "http://127.0.0.1:11434"
  model: "deepseek-coder-v2:latest"

openai:
  api_key: ""
  base_url: "https://api.openai.com/v1"
  model: "gpt-4o-mini"

risk_policy: normal
confirm_tools: false
max_steps: 4
decision_cache_ttl: 180
http_timeout: 60
max_retries: 2
retry_delay: 2
enable_debug: false
"""
