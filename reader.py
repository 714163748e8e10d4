#!/usr/bin/env python3
"""
Standalone overview reader for the Jarvis dashboard.
Computes one overview (or a single section of it) in-process and prints it
as JSON, without starting the web server. Handy for checking a workspace.
"""
import argparse
import json
import sys

import overview


def main(argv=None):
    parser = argparse.ArgumentParser(description='Print the dashboard overview as JSON.')
    parser.add_argument('section', nargs='?', help='only print this top-level section, e.g. mood')
    args = parser.parse_args(argv)

    data = overview.get_overview()
    if args.section:
        if args.section not in data:
            print(f'[READER] Unknown section {args.section!r}; choose from {", ".join(sorted(data))}', file=sys.stderr)
            return 2
        data = data[args.section]
    print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


if __name__ == '__main__':
    sys.exit(main())
