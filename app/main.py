"""
main.py — Application entry point.

Clean pipeline, no globals, no mixed concerns:

    CaptureSurface → FrameSource → FrameSlot → InferenceEngine
          → decode → ActionExecutor → InputSurface

Each component is independently testable and replaceable.
"""
from __future__ import annotations
import argparse
import logging
import sys
import time
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from app.config import AppConfig
from core.agent import Agent
from core.capture import CaptureSurface, VideoCaptureSurface
from core.decoder import decode
from core.engine import InferenceEngine
from core.executor import ActionExecutor
from core.frame_slot import FrameSlot
from core.frame_source import FrameSource
from core.input_surface import InputSurface, RecordingInputSurface
from core.model_provider import FileModelProvider
from core.status import StatusChannel
from domain.models import StatusUpdate
from utils import DebugImageWriter

logger = logging.getLogger(__name__)


# ---- wiring -------------------------------------------------------------
def make_capture(config: AppConfig) -> CaptureSurface:
    if config.capture_source == "camera":
        return VideoCaptureSurface(config.camera_device, config.fps_limit)
    # pyautogui needs a display, import only when the screen is used
    from core.desktop import ScreenshotCaptureSurface
    return ScreenshotCaptureSurface(config.fps_limit)


def make_input_surface(config: AppConfig) -> InputSurface:
    if config.dry_run:
        return RecordingInputSurface()
    from core.desktop import PyAutoGUIInputSurface
    return PyAutoGUIInputSurface()


def build_agent(
    config: AppConfig,
    capture: Optional[CaptureSurface] = None,
    input_surface: Optional[InputSurface] = None,
    status: Optional[StatusChannel] = None,
) -> Agent:
    """Assemble every component from *config*. Collaborators may be injected."""
    capture       = capture or make_capture(config)
    input_surface = input_surface or make_input_surface(config)
    status        = status or StatusChannel(maxsize=config.status_queue_size)

    slot = FrameSlot()
    debug_sink = None
    if config.debug_image_dir is not None:
        debug_sink = DebugImageWriter(config.debug_image_dir, config.debug_image_every)

    source   = FrameSource(capture, slot, debug_sink=debug_sink)
    executor = ActionExecutor(input_surface, click_duration_ms=config.click_duration_ms)
    engine   = InferenceEngine(
        provider=FileModelProvider(config.model_path, config.model_sha256),
        slot=slot,
        executor=executor,
        status=status,
        input_size=config.input_size,
        output_size=config.output_size,
        norm_mean=config.norm_mean,
        norm_std=config.norm_std,
        decoder=partial(decode, swipe_duration_ms=config.swipe_duration_ms),
    )
    return Agent(engine, source, capture, input_surface, status, period_ms=config.period_ms)


def _print_status(update: StatusUpdate) -> None:
    print(f"[{update.kind.value.upper()}] {update.message}")


# ---- run ------------------------------------------------------------------
def run(config: AppConfig) -> int:
    print("="*55)
    print("  SCREENPILOT — perceive / decide / act loop")
    print("="*55)
    print(f"  Model   : {config.model_path}")
    print(f"  Source  : {config.capture_source} @ {config.fps_limit} fps")
    print(f"  Period  : {config.period_ms} ms")
    print(f"  Dry run : {config.dry_run}")
    print("  Press Ctrl+C to quit")
    print("="*55 + "\n")

    agent = build_agent(config)
    agent.status.subscribe(_print_status)

    try:
        if not agent.start():
            agent.status.drain()
            return 1
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        agent.close()
        stats = agent.engine.stats()
        agent.status.drain()
        agent.status.close()
        logger.info("Tick stats: %s", {k.value: v for k, v in stats.items()})
        print("\n✓ Application closed cleanly")
    return 0


def parse_args(argv: Optional[List[str]], base: AppConfig) -> AppConfig:
    parser = argparse.ArgumentParser(prog="screenpilot", description=__doc__.splitlines()[1])
    parser.add_argument("--model", type=Path, help="serialised model (.joblib/.pkl)")
    parser.add_argument("--sha256", help="expected model checksum")
    parser.add_argument("--period-ms", type=int, help="inference period")
    parser.add_argument("--source", choices=["screen", "camera"], help="capture source")
    parser.add_argument("--camera", type=int, help="camera device index")
    parser.add_argument("--fps", type=int, help="capture rate limit")
    parser.add_argument("--debug-dir", type=Path, help="dump captured frames here")
    parser.add_argument("--dry-run", action="store_true", help="record actions instead of performing them")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING...")
    args = parser.parse_args(argv)

    overrides = {
        "model_path":        args.model,
        "model_sha256":      args.sha256,
        "period_ms":         args.period_ms,
        "capture_source":    args.source,
        "camera_device":     args.camera,
        "fps_limit":         args.fps,
        "debug_image_dir":   args.debug_dir,
        "log_level":         args.log_level,
    }
    config = replace(base, **{k: v for k, v in overrides.items() if v is not None})
    if args.dry_run:
        config = replace(config, dry_run=True)
    return config.validate()


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    config = parse_args(argv, AppConfig.from_env())
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    return run(config)


if __name__ == "__main__":
    sys.exit(main())
