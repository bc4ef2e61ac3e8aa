"""
Command-line tools

- export_option_chain: fetch option chains and write CSV exports
- validate_option_chain: check a running server's option chain endpoint

Both are installed as console scripts (see pyproject.toml) and can also be run
from the repository root with ``python -m scripts.<name>``.
"""
