"""
Main entry point for running the capacity model.

Usage:
    python -m queue_capacity_model configs/checkout_api.json
    python -m queue_capacity_model --list-scenarios

See queue_capacity_model.cli for all options.
"""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
