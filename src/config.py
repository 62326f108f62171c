"""Runtime settings read from ``SHOP_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_level(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"{name} must be a logging level name, got {raw!r}")
    return level


@dataclass(frozen=True)
class ShopConfig:
    """Settings for a shop run.

    ``strict_mode`` makes shop-level operations raise
    :class:`errors.OperationRejectedError` instead of returning a rejected
    result.  ``enforce_transitions`` applies the order and payment status
    tables; turning it off allows any status at any time.
    """
    shop_name: str = "Isroil Store"
    strict_mode: bool = False
    enforce_transitions: bool = True
    payment_id_start: int = 5001
    log_dir: Optional[str] = None
    log_level: int = logging.WARNING

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ShopConfig":
        env = os.environ if env is None else env
        defaults = cls()
        payment_id_start = _env_int(env, "SHOP_PAYMENT_ID_START", defaults.payment_id_start)
        if payment_id_start <= 0:
            raise ValueError("SHOP_PAYMENT_ID_START must be positive")
        return cls(
            shop_name=env.get("SHOP_NAME") or defaults.shop_name,
            strict_mode=_env_bool(env, "SHOP_STRICT_MODE", defaults.strict_mode),
            enforce_transitions=_env_bool(env, "SHOP_ENFORCE_TRANSITIONS", defaults.enforce_transitions),
            payment_id_start=payment_id_start,
            log_dir=env.get("SHOP_LOG_DIR") or None,
            log_level=_env_level(env, "SHOP_LOG_LEVEL", defaults.log_level),
        )
