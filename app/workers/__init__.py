"""
Workers module for command-line jobs.

This module contains:
- import_cli: bulk import of SwitchBot CSV exports into the measurement store
"""
