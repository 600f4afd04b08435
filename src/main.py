#!/usr/bin/env python3
"""
main.py
- Container entrypoint for the Rancher deploy plugin.
- Runs a single deployment (see cli/entrypoint.py) and exits with its status.
"""

from cli.entrypoint import run

if __name__ == "__main__":
    run()
