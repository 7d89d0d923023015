"""
CLI entry point for governance scoring.

Usage:
    python run_cli.py                          # Run with sample data
    python run_cli.py --file governance.xlsx   # Score an Excel workbook
    python run_cli.py --sheet Metrics          # Specify sheet name
    python run_cli.py --no-plots               # Skip chart generation

For installed package, use: gov-score
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from governance_scoring.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
