# cards2flow/cli.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import GenerateConfig
from .constants import GROUP_BY_CHOICES
from .pipeline import generate, summarize


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cards2flow",
        description="Generate a Greentic pack workspace (flows) from Adaptive Card JSON files.",
    )
    parser.add_argument(
        "--cards",
        type=Path,
        required=True,
        help="Directory of Adaptive Card JSON files.",
    )
    parser.add_argument(
        "--out",
        type=Path,
        required=True,
        help="Output workspace directory.",
    )
    parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Pack name and dist artifact name (default: output directory name).",
    )
    parser.add_argument(
        "--group-by",
        type=str,
        choices=GROUP_BY_CHOICES,
        default=None,
        help=(
            "Flow grouping: 'folder' falls back to the card's parent directory "
            "name when no flow is declared; 'flow-field' uses declared flows only."
        ),
    )
    parser.add_argument(
        "--default-flow",
        type=str,
        default=None,
        help="Flow name for cards that declare none.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help=(
            "Fail on conflicts, missing flows, missing route targets and duplicate "
            "route keys instead of warning. Nothing is written on failure."
        ),
    )
    parser.add_argument(
        "--build",
        action="store_true",
        help="Run `greentic-pack build` on the workspace after generation.",
    )
    parser.add_argument(
        "--greentic-pack-bin",
        type=Path,
        default=None,
        help="Path to the greentic-pack binary (default: $GREENTIC_PACK_BIN or PATH).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print greentic-pack output.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entrypoint."""
    args = _build_parser().parse_args(argv)

    out_dir: Path = args.out
    cfg = GenerateConfig(
        cards_dir=args.cards,
        out_dir=out_dir,
        name=args.name or out_dir.resolve().name,
        group_by=args.group_by,
        default_flow=args.default_flow,
        strict=args.strict,
        build=args.build,
        pack_bin=args.greentic_pack_bin,
        verbose=args.verbose,
    )

    result = generate(cfg)

    for warning in result.verdict.warnings:
        print(f"warning: {warning.location}: {warning.message}", file=sys.stderr)

    if not result.ok:
        for error in result.verdict.errors:
            print(f"error: [{error.kind}] {error.location}: {error.message}", file=sys.stderr)
        count = len(result.verdict.errors)
        if result.written:
            print(
                f"error: packaging failed with {count} error(s); "
                "the workspace was written but no manifest was recorded",
                file=sys.stderr,
            )
        else:
            print(
                f"error: generation aborted with {count} error(s); "
                "no files were written",
                file=sys.stderr,
            )
        raise SystemExit(2)

    if cfg.verbose and result.build_output is not None:
        if result.build_output.stdout:
            print(result.build_output.stdout.rstrip())
        if result.build_output.stderr:
            print(result.build_output.stderr.rstrip(), file=sys.stderr)

    print(summarize(cfg, result))


if __name__ == "__main__":
    main()
