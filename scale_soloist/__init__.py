#!/usr/bin/env python3
"""Scale Soloist library.

This package generates improvised-sounding solo lines over a musical scale.
A typical workflow is to build a *scale space* with
:func:`build_scale_space` (root, mode, category, start octave and note
count), hand it to :func:`generate_solo` with a number of measures, and feed
the resulting note and rest events to a player or to
:func:`create_midi_file`.  A command line interface and a small Flask JSON
API wrap these calls.

Underlying Algorithm
--------------------
Solos are built from short phrases of two or three notes.  Each phrase
starts from the last note of the previous one and mostly moves by scale
step, continuing in the same direction more often than not.  Less often it
skips a third or a fourth, and occasionally it jumps to any scale tone
within a perfect fourth.  Immediate repeats of the same pitch are usually
swapped for a neighbouring tone or replaced by a rest.  Durations depend on
the note's position in the phrase: measures open on a longer note, middle
notes mix eighths, sixteenths, dotted eighths and complete triplet groups.

Phrases are appended until each 4/4 measure holds at least four beats. All
randomness flows through an injectable source, so a seeded
:class:`random.Random` reproduces a solo exactly, and every probability is a
named field of :class:`GeneratorConfig`.

Features include:
- Six scale types (major/minor diatonic, pentatonic and blues) on any root.
- Explicit note/rest event types with exact beat arithmetic.
- Seeded, reproducible generation.
- JSON and MIDI output.
- CLI and Flask interfaces.
"""

__version__ = "0.1.0"

from .scales import (  # noqa: F401
    CATEGORIES,
    MODES,
    NOTE_TO_SEMITONE,
    NOTES,
    SCALE_PATTERNS,
    EmptyScaleSpaceError,
    ScaleDegree,
    ScaleSpace,
    build_scale_space,
    canonical_category,
    canonical_mode,
    canonical_pitch_class,
    get_scale,
    note_frequency,
    scale_name,
    scale_note_count,
)
from .note_utils import (  # noqa: F401
    degree_to_midi,
    midi_to_degree,
    nearest_in_scale,
    parse_degree,
    position_in_scale,
    semitone_interval,
    step_in_scale,
    transpose,
)
from .events import (  # noqa: F401
    NOTE_DURATIONS,
    REST_DURATIONS,
    Duration,
    NoteEvent,
    RestEvent,
    SoloEvent,
    event_from_dict,
    event_to_dict,
    is_rest,
    solo_to_json,
    total_beats,
)
from .randomness import RandomSource, make_rng  # noqa: F401
from .config import (  # noqa: F401
    DEFAULT_CONFIG,
    DEFAULT_SETTINGS_FILE,
    GeneratorConfig,
    config_from_dict,
    load_config,
    load_settings,
    save_settings,
)
from .rhythm_engine import RhythmGenerator, create_rest  # noqa: F401
from .phrase_generator import generate_phrase  # noqa: F401
from .solo import (  # noqa: F401
    BEATS_PER_MEASURE,
    SoloGenerator,
    generate_measures,
    generate_solo,
    iter_solo,
)
from .midi_io import create_midi_file  # noqa: F401

# Limits applied by the command line and web interfaces. Generation itself
# accepts any octave and note count; these bounds mirror the controls of the
# launchpad page and keep rendered pitches inside the MIDI range.
MIN_OCTAVE = 0
MAX_OCTAVE = 7
MIN_NOTE_COUNT = 4
MAX_NOTE_COUNT = 16
MIN_BPM = 40
MAX_BPM = 240


def main() -> None:
    """Console entry point; see :func:`scale_soloist.cli.main`."""
    from .cli import main as cli_main

    cli_main()
