"""Configuration for the LazyDev workflow server.

## Resolution Order

1. ``LINEAR_API_KEY`` (and ``LINEAR_API_URL``, ``LAZYDEV_RETRIEVAL_STRATEGY``)
   environment variables
2. User config file at ``<user config dir>/lazydev-workflow/config.json``

### config.json Structure

```json
{
  "api_key": "lin_api_xxx",
  "api_url": "https://api.linear.app/graphql",
  "strategy": "graphql"
}
```

Configuration is read once at startup and handed to the retriever; nothing
downstream looks at the environment.
"""

import os
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "lazydev-workflow"
CONFIG_DIR = Path(user_config_dir(APP_NAME))
CONFIG_FILE = CONFIG_DIR / "config.json"

LINEAR_API_URL = "https://api.linear.app/graphql"
API_KEY_ENV = "LINEAR_API_KEY"
API_URL_ENV = "LINEAR_API_URL"
STRATEGY_ENV = "LAZYDEV_RETRIEVAL_STRATEGY"
LOG_LEVEL_ENV = "LAZYDEV_LOG_LEVEL"

STRATEGY_GRAPHQL = "graphql"
STRATEGY_SDK = "sdk"
STRATEGIES = (STRATEGY_GRAPHQL, STRATEGY_SDK)


@dataclass
class LinearConfig:
    """Linear API configuration."""
    api_key: Optional[str] = None
    api_url: str = LINEAR_API_URL
    strategy: str = STRATEGY_GRAPHQL
    source: str = "none"  # "env", "file", "none"

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown retrieval strategy: {self.strategy!r} "
                f"(expected one of: {', '.join(STRATEGIES)})"
            )

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def load(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        config_file: Optional[Path] = None,
    ) -> "LinearConfig":
        """Load config from environment, then the user config file.

        A missing API key is not an error here: the tool reports it per call.
        """
        env = os.environ if environ is None else environ
        path = CONFIG_FILE if config_file is None else config_file

        data: dict = {}
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable config file %s: %s", path, e)
                data = {}

        api_key = env.get(API_KEY_ENV)
        source = "env"
        if not api_key:
            api_key = data.get("api_key")
            source = "file" if api_key else "none"

        return cls(
            api_key=api_key or None,
            api_url=env.get(API_URL_ENV) or data.get("api_url") or LINEAR_API_URL,
            strategy=(env.get(STRATEGY_ENV) or data.get("strategy") or STRATEGY_GRAPHQL).lower(),
            source=source,
        )

    @classmethod
    def get_auth_help_message(cls) -> str:
        """Get helpful message about authentication options."""
        return f"""Linear authentication not configured.

To authenticate, use one of these methods:

1. Environment variable:
   $ export {API_KEY_ENV}=lin_api_xxxxxxxxxxxx

2. Create {CONFIG_FILE}:
   {{"api_key": "lin_api_xxxxxxxxxxxx"}}

To get an API key:
   https://linear.app/settings/api
"""
