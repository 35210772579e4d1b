"""CLI entrypoint for the propchoro layer renderer."""

from __future__ import annotations

import argparse
import logging
from typing import Sequence

from .config import AppConfig, load_config
from .layer import format_render_lines, run_render_layer
from .util import ensure_output_dirs, setup_logging
from .validate import Validator, format_report_lines

LOGGER = logging.getLogger("propchoro.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="propchoro",
        description="Proportional symbols layer colored by a choropleth classification.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="layer.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")
        p.add_argument(
            "--strict-data-files",
            action="store_true",
            help="Treat dataset quality issues as errors.",
        )

    render_p = subparsers.add_parser("render", help="Validate inputs and render the layer.")
    add_common(render_p)
    render_p.add_argument(
        "--skip-validation",
        action="store_true",
        help="Render without running the validation step first.",
    )

    validate_p = subparsers.add_parser("validate", help="Validate config and input files.")
    add_common(validate_p)

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    log_file = cfg.output.logs_dir / "render.log"
    ensure_output_dirs(cfg.output.path, cfg.output.summary_json, log_file)
    setup_logging(log_file, verbose=args.verbose)
    return cfg


def _run_validate(cfg: AppConfig, *, strict_data_files: bool) -> int:
    report = Validator(cfg).run(strict_data_files=strict_data_files)
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_render(cfg: AppConfig, *, strict_data_files: bool, skip_validation: bool) -> int:
    if not skip_validation:
        report = Validator(cfg).run(strict_data_files=strict_data_files)
        for line in format_report_lines(report):
            LOGGER.info(line)
        if not report.ok:
            LOGGER.error("Render aborted due to validation errors.")
            return 1

    render_report = run_render_layer(cfg)
    for line in format_render_lines(render_report):
        LOGGER.info(line)
    return 0 if render_report.ok else 1


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    strict = bool(args.strict_data_files)
    if command == "render":
        return _run_render(cfg, strict_data_files=strict, skip_validation=bool(args.skip_validation))
    if command == "validate":
        return _run_validate(cfg, strict_data_files=strict)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
