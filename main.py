#!/usr/bin/env python3
"""
MP4 Remux - Main Launcher

Entry point when running from a source checkout: python main.py <files or folders>
"""
import os
import sys
import traceback

# Main entry point
if __name__ == "__main__":
    # Add the current directory to the Python path
    current_dir = os.path.dirname(os.path.abspath(__file__))
    if current_dir not in sys.path:
        sys.path.insert(0, current_dir)

    try:
        from mp4remux.main import main
        sys.exit(main())
    except ImportError as e:
        print(f"Error importing the application: {str(e)}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)
