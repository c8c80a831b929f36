"""
App Subpackage - User-Facing Entry Points

    - generate.py: generate(config), build_tree, solve_sequence, demo config, formatters
    - cli.py: the `wfc-compose` command
"""

from wfc_composer.app.generate import build_tree, demo_config, generate, solve_sequence
