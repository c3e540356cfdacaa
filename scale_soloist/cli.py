"""Command line helpers for Scale Soloist.

Modification summary
--------------------
* ``run_cli`` accepts an explicit ``argv`` list so tests and other programs
  can drive it without patching ``sys.argv``.
* ``--config`` loads generator probability overrides from JSON and reports
  invalid files instead of silently using the defaults.
* Ensured the output directory exists and gracefully handles ``OSError`` when
  writing MIDI files.
* ``--output`` is refused up front when the scale space climbs above MIDI
  note 127, instead of failing halfway through writing the file.

This module implements the console entry point. ``run_cli`` parses command
line arguments, builds the scale space, generates a solo and prints it as
text or JSON, optionally writing a MIDI file as well. Validation failures are
logged and end the process with exit status ``1``.

Defaults for the scale options come from the JSON settings file (see
:func:`scale_soloist.config.load_settings`) and ``--save-settings`` stores
the options of the current run there.

Example
-------
Running ``python -m scale_soloist --root D --mode minor --category pentatonic
--octave 3 --notes 10 --measures 4 --seed 3 --format json`` prints four
measures of D minor pentatonic as a JSON array.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import (
    CATEGORIES,
    MAX_BPM,
    MAX_NOTE_COUNT,
    MAX_OCTAVE,
    MIN_BPM,
    MIN_NOTE_COUNT,
    MIN_OCTAVE,
    MODES,
    NOTES,
    canonical_category,
    canonical_mode,
    canonical_pitch_class,
)
from .config import DEFAULT_SETTINGS_FILE, load_config, load_settings, save_settings


__all__ = ["run_cli", "main", "format_solo"]


logger = logging.getLogger(__name__)

# Keys persisted by ``--save-settings``.
_SETTING_KEYS = ("root", "mode", "category", "octave", "notes", "bpm")


def format_solo(events) -> str:
    """Return one ``pitch duration`` line per event (``rest`` for rests)."""

    lines = []
    for event in events:
        pitch = "rest" if event.note is None else str(event.note)
        lines.append(f"{pitch:<5} {event.duration.value}")
    return "\n".join(lines)


def _build_parser(defaults: dict) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a solo over a musical scale and print it or save it as MIDI."
    )
    parser.add_argument("--list-scales", action="store_true", help="List supported roots, modes and categories and exit")
    parser.add_argument("--root", type=str, default=defaults.get("root", "C"), help="Root pitch class (e.g. C, F#, Bb).")
    parser.add_argument("--mode", type=str, default=defaults.get("mode", "major"), help=f"Scale mode ({', '.join(MODES)}).")
    parser.add_argument("--category", type=str, default=defaults.get("category", "diatonic"), help=f"Scale category ({', '.join(CATEGORIES)}).")
    parser.add_argument(
        "--octave",
        type=int,
        default=defaults.get("octave", 4),
        help=f"Start octave of the scale space ({MIN_OCTAVE}-{MAX_OCTAVE}, default: 4).",
    )
    parser.add_argument(
        "--notes",
        type=int,
        default=defaults.get("notes", 8),
        help=f"Number of scale degrees available to the solo ({MIN_NOTE_COUNT}-{MAX_NOTE_COUNT}, default: 8).",
    )
    parser.add_argument("--measures", type=int, default=2, help="Number of 4/4 measures to generate (default: 2).")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--config", type=str, help="JSON file with generator probability overrides")
    parser.add_argument("--format", choices=("text", "json"), default="text", help="Output format for stdout (default: text).")
    parser.add_argument("--output", type=str, help="Optional MIDI file path to write the solo to.")
    parser.add_argument("--bpm", type=int, default=defaults.get("bpm", 120), help=f"Tempo used for MIDI output ({MIN_BPM}-{MAX_BPM}, default: 120).")
    parser.add_argument("--instrument", type=int, default=0, help="MIDI program number for the solo instrument")
    parser.add_argument("--settings-file", type=str, help="Path to the JSON settings file")
    parser.add_argument("--save-settings", action="store_true", help="Store the scale options of this run as defaults")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log phrase and measure details")
    return parser


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse CLI arguments, generate a solo and emit it.

    @param argv (List[str]|None): Arguments without the program name;
        ``sys.argv[1:]`` when ``None``.
    @returns None: Output is written to stdout and optionally a MIDI file.
    """

    argv = sys.argv[1:] if argv is None else argv

    # Settings are read before the real parse so they can supply defaults.
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--settings-file", type=str)
    pre_args, _ = pre_parser.parse_known_args(argv)
    settings_path = (
        Path(pre_args.settings_file).expanduser() if pre_args.settings_file else DEFAULT_SETTINGS_FILE
    )
    settings = load_settings(settings_path)
    if not isinstance(settings, dict):
        logger.warning("Ignoring settings file %s: expected a JSON object", settings_path)
        settings = {}

    args = _build_parser(settings).parse_args(argv)

    if args.verbose:
        logging.getLogger("scale_soloist").setLevel(logging.DEBUG)

    if args.list_scales:
        print("Roots: " + " ".join(NOTES))
        print("Modes: " + " ".join(MODES))
        print("Categories: " + " ".join(CATEGORIES))
        return

    try:
        args.root = canonical_pitch_class(args.root)
        args.mode = canonical_mode(args.mode)
        args.category = canonical_category(args.category)
    except ValueError as exc:
        logger.error(str(exc))
        sys.exit(1)

    if not MIN_OCTAVE <= args.octave <= MAX_OCTAVE:
        logger.error(f"Octave must be between {MIN_OCTAVE} and {MAX_OCTAVE}.")
        sys.exit(1)
    if not MIN_NOTE_COUNT <= args.notes <= MAX_NOTE_COUNT:
        logger.error(f"Note count must be between {MIN_NOTE_COUNT} and {MAX_NOTE_COUNT}.")
        sys.exit(1)
    if args.measures <= 0:
        logger.error("Number of measures must be a positive integer.")
        sys.exit(1)
    if not MIN_BPM <= args.bpm <= MAX_BPM:
        logger.error(f"BPM must be between {MIN_BPM} and {MAX_BPM}.")
        sys.exit(1)
    if args.instrument < 0 or args.instrument > 127:
        logger.error("Instrument must be between 0 and 127.")
        sys.exit(1)

    config = None
    if args.config:
        try:
            config = load_config(Path(args.config))
        except (OSError, ValueError) as exc:
            logger.error("Could not load generator config: %s", exc)
            sys.exit(1)

    from . import (
        SoloGenerator,
        create_midi_file,
        degree_to_midi,
        scale_name,
        solo_to_json,
        total_beats,
    )

    generator = SoloGenerator.from_scale(
        args.root,
        args.mode,
        args.category,
        args.octave,
        args.notes,
        config=config,
        seed=args.seed,
    )

    if args.output:
        # The space ascends, so only its highest degree can leave the MIDI range.
        try:
            degree_to_midi(generator.space[-1])
        except ValueError:
            logger.error(
                f"Scale space reaches {generator.space[-1]}, above the MIDI range; "
                "lower --octave or --notes to write a MIDI file."
            )
            sys.exit(1)

    events = generator.solo(args.measures)

    if args.format == "json":
        print(solo_to_json(events, indent=2))
    else:
        print(format_solo(events))

    logger.info(
        "%s: %d events over %d measures (%s beats).",
        scale_name(args.root, args.mode, args.category),
        len(events),
        args.measures,
        total_beats(events),
    )

    if args.output:
        # ``exist_ok=True`` permits reusing pre-existing directories while
        # still creating nested paths as needed.
        Path(args.output).parent.mkdir(parents=True, exist_ok=True)
        try:
            create_midi_file(events, args.bpm, args.output, program=args.instrument)
        except (OSError, ValueError) as exc:
            logger.error("Could not write MIDI file: %s", exc)
            sys.exit(1)

    if args.save_settings:
        save_settings({key: getattr(args, key) for key in _SETTING_KEYS}, settings_path)
        logger.info("Settings saved to %s", settings_path)


def main() -> None:
    """Entry point used by ``python -m scale_soloist`` and the console script."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli()
