"""Package entry point for ``python -m sta_transcriber``.

WHY: Users run the transcriber as ``python -m sta_transcriber audio.mp3``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.
"""

import sys

from sta_transcriber.cli import main

if __name__ == "__main__":
    sys.exit(main())
