from __future__ import annotations
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

ENV_PREFIX = "SCREENPILOT_"


@dataclass
class AppConfig:
    """
    Central configuration injected into all components.
    No more scattered module-level constants.
    """
    # ---- paths ---------------------------------------------------------
    model_path: Path = Path("models/screen_policy.joblib")
    model_sha256: Optional[str] = None

    # ---- inference loop ------------------------------------------------
    period_ms: int = 200
    input_size: int = 224
    norm_mean: float = 0.0
    norm_std: float = 255.0
    output_size: int = 512

    # ---- capture -------------------------------------------------------
    capture_source: str = "screen"      # "screen" | "camera"
    camera_device: int = 0
    fps_limit: int = 5

    # ---- actions -------------------------------------------------------
    click_duration_ms: int = 100
    swipe_duration_ms: int = 500
    dry_run: bool = False

    # ---- debug images --------------------------------------------------
    debug_image_dir: Optional[Path] = None
    debug_image_every: int = 10

    # ---- status / logging ----------------------------------------------
    status_queue_size: int = 64
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        base: Optional["AppConfig"] = None,
    ) -> "AppConfig":
        """
        Override defaults with SCREENPILOT_<FIELD> variables,
        e.g. SCREENPILOT_PERIOD_MS=250.
        """
        env = os.environ if environ is None else environ
        config = base or cls()
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            overrides[f.name] = _coerce(f.name, getattr(config, f.name), raw)
        return replace(config, **overrides)

    def validate(self) -> "AppConfig":
        if self.period_ms <= 0:
            raise ValueError("period_ms must be positive")
        if self.input_size <= 0:
            raise ValueError("input_size must be positive")
        if self.output_size <= 0:
            raise ValueError("output_size must be positive")
        if self.click_duration_ms <= 0 or self.swipe_duration_ms <= 0:
            raise ValueError("stroke durations must be positive")
        if self.norm_std == 0:
            raise ValueError("norm_std must be non-zero")
        if self.capture_source not in ("screen", "camera"):
            raise ValueError(f"unknown capture_source {self.capture_source!r}")
        return self


_PATHS = {"model_path", "debug_image_dir"}


def _coerce(name: str, current: Any, raw: str) -> Any:
    if name in _PATHS:
        return Path(raw)
    if name == "model_sha256":
        return raw.strip()
    if isinstance(current, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    return raw


# Default singleton: import and use directly, or override in tests.
default_config = AppConfig()
