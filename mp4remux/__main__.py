"""Allows running the tool with 'python -m mp4remux'."""
import sys

from mp4remux.main import main

sys.exit(main())
