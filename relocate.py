#!/usr/bin/env python3
"""Runs the file mover: ./relocate.py -c config.ini -d DEST FILE..."""

from filemover.startup_code.entrypoint import main

if __name__ == "__main__":
    main()
