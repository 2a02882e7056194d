#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Write the Pygments stylesheet used by highlighted code blocks.

    python scripts/gen_pygments_css.py [--style friendly] [--output PATH]
"""
# -----------------------------------------------------------------------------

import argparse
from pathlib import Path

from pygments.formatters import HtmlFormatter

_DEFAULT_OUTPUT = Path(__file__).resolve().parent.parent / "docportal" / "static" / "css" / "pygments.css"


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--style", default="friendly", help="Pygments style name")
    parser.add_argument("--output", type=Path, default=_DEFAULT_OUTPUT)
    args = parser.parse_args()

    css = HtmlFormatter(style=args.style).get_style_defs(".highlight")
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(css + "\n", encoding="utf-8")
    print(f"Written {args.output}")


if __name__ == "__main__":
    main()
