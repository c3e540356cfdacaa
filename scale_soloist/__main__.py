"""Entry point wrapper for ``python -m scale_soloist``.

When the package is executed as a module the code here simply forwards
execution to :func:`scale_soloist.main`, so ``python -m scale_soloist`` and
the installed ``scale-soloist`` console script behave identically.

Example
-------
The following invocation prints two measures of A minor blues and writes
them to a MIDI file::

    python -m scale_soloist --root A --mode minor --category blues \
        --measures 2 --bpm 100 --output solo.mid
"""

from . import main

if __name__ == "__main__":
    main()
