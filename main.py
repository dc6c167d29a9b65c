#!/usr/bin/env python3
"""StudySession entry point.

Run with:
    python main.py --minutes 25 --topic "Linear algebra"
    python -m studysession
"""

from studysession.__main__ import main


if __name__ == "__main__":
    main()
