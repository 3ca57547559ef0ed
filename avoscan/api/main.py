from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from ..ai.predictor import AvocadoClassifier, remote_backend_factory
from .config_loader import AppConfig, load_config
from .server import create_app

logger = logging.getLogger(__name__)

MODEL_URL_ENV = "AVOSCAN_MODEL_URL"


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser with minimal CLI flags.

    Most configuration is loaded from config/avoscan.json.
    CLI flags are only for quick overrides.
    """
    parser = argparse.ArgumentParser(
        description="Run the avocado ripeness classification API",
        epilog="Configuration is loaded from config/avoscan.json. "
        "CLI arguments override config file settings.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/avoscan.json",
        help="Path to JSON configuration file (default: config/avoscan.json)",
    )
    parser.add_argument("--host", type=str, default=None, help="Override server host")
    parser.add_argument("--port", type=int, default=None, help="Override server port")
    parser.add_argument(
        "--model-url",
        type=str,
        default=None,
        help=f"Default model URL (overrides config and ${MODEL_URL_ENV}); omit for demo mode",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> AppConfig:
    try:
        cfg = load_config(args.config if Path(args.config).exists() else None)
    except Exception as exc:
        logger.error("Failed to load configuration %s: %s", args.config, exc)
        sys.exit(1)

    env_model_url = os.environ.get(MODEL_URL_ENV)
    if env_model_url:
        cfg.classifier.model_url = env_model_url.strip() or None
    if args.model_url:
        cfg.classifier.model_url = args.model_url
    if args.host:
        cfg.server.host = args.host
    if args.port:
        cfg.server.port = args.port
    return cfg


def main() -> None:
    load_dotenv()
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s"
        )
    args = build_parser().parse_args()
    cfg = resolve_config(args)

    logger.info("Server configuration: %s:%d", cfg.server.host, cfg.server.port)
    logger.info("Default model URL: %s", cfg.classifier.model_url or "none (demo mode)")

    classifier = AvocadoClassifier(
        model_url=cfg.classifier.model_url,
        labels=cfg.classifier.labels,
        threshold=cfg.classifier.confidence_threshold,
        heuristic_jitter=cfg.classifier.heuristic_jitter,
        top_jitter=cfg.classifier.top_jitter,
        backend_factory=remote_backend_factory(cfg.classifier.timeout),
    )
    app = create_app(
        classifier=classifier,
        settings_path=Path(cfg.paths.settings),
        last_result_path=Path(cfg.paths.last_result),
    )
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port, log_level="info")


if __name__ == "__main__":
    main()
