#!/usr/bin/env python3
"""
CabalHelper Application Launcher

This is the main entry point for the CabalHelper application.
It launches the application from the src/cabalhelper package.
"""

import sys
from pathlib import Path

# Add the src directory to Python path so we can import from src.cabalhelper
project_root = Path(__file__).parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

# Import and run the main application
from cabalhelper.main import main

if __name__ == "__main__":
    main()
