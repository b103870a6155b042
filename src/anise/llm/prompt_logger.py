"""
Anise - Prompt Logger.

Logs LLM prompts and responses to markdown files for debugging.
Enabled via ANISE_LOG_PROMPTS=1 or the CLI's --log-prompts flag.
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any

# Configuration
LOG_PROMPTS = os.getenv("ANISE_LOG_PROMPTS", "0") == "1"
LOG_DIR = Path("prompt_logs")

# Session tracking
_session_id: str | None = None
_call_counter: int = 0


def enable_prompt_logging(enabled: bool = True) -> None:
    """Enable or disable prompt logging."""
    global LOG_PROMPTS
    LOG_PROMPTS = enabled
    if enabled:
        LOG_DIR.mkdir(exist_ok=True)


def _get_session_dir() -> Path:
    """Get (and create) the directory for this run's logs."""
    global _session_id
    if _session_id is None:
        _session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_dir = LOG_DIR / _session_id
    session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir


def log_prompt(
    *,
    name: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    response_model: str,
    response: Any = None,
    usage: Any = None,
    error: str | None = None,
) -> Path | None:
    """
    Write one LLM call to `prompt_logs/<session>/<nn>_<name>.md`.

    Returns the file path, or None when logging is disabled.
    """
    if not LOG_PROMPTS:
        return None

    global _call_counter
    _call_counter += 1

    filepath = _get_session_dir() / f"{_call_counter:03d}_{name}.md"

    content = f"""# LLM Call: {name}

**Time:** {datetime.now().isoformat()}
**Model:** {model}
**Response Model:** {response_model}

---

## System Prompt

```
{system_prompt}
```

---

## User Prompt

```
{user_prompt}
```

---

## Response

"""

    if error:
        content += f"**ERROR:** {error}\n"
    elif response is not None:
        response_dict = response.model_dump() if hasattr(response, "model_dump") else response
        content += f"```json\n{json.dumps(response_dict, indent=2, default=str)}\n```\n"
    else:
        content += "(No response)\n"

    if usage is not None:
        usage_dict = usage.model_dump(mode="json") if hasattr(usage, "model_dump") else usage
        content += f"\n## Usage\n\n```json\n{json.dumps(usage_dict, indent=2, default=str)}\n```\n"

    filepath.write_text(content, encoding="utf-8")
    return filepath


def get_session_log_dir() -> Path | None:
    """Get the current session's log directory, if logging is enabled."""
    if not LOG_PROMPTS:
        return None
    return _get_session_dir()


def reset_session() -> None:
    """Reset the session (for testing or a new run)."""
    global _session_id, _call_counter
    _session_id = None
    _call_counter = 0
