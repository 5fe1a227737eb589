from __future__ import annotations

import os
from typing import Mapping


CLEAN_ENV_BASELINE: dict[str, str] = {
    "LHCI_GITHUB_TOKEN": "",
    "LHCI_GITHUB_APP_TOKEN": "",
    "NO_UPDATE_NOTIFIER": "1",
    "LHCI_NO_LIGHTHOUSERC": "1",
}


def get_clean_environment(extra_env_vars: Mapping[str, object] | None = None) -> dict[str, str]:
    """
    Build a child-process environment from the ambient one.

    Credentials are blanked and update checks and rc-file discovery are
    disabled; `extra_env_vars` are applied last so callers can override any of
    it. `os.environ` itself is left untouched.
    """
    env = os.environ.copy()
    env.update(CLEAN_ENV_BASELINE)
    if extra_env_vars:
        env.update({str(key): str(value) for key, value in extra_env_vars.items()})
    return env
