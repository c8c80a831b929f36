"""
Test Package

Contains unit tests for all modules.
Run with: pytest tests/ -v

Test files follow the pattern:
    test_<module_name>.py

Example:
    tests/test_canvas.py      - Tests for wfc_composer/wfc/canvas.py
    tests/test_traverser.py   - End-to-end tests for hierarchy/traverser.py
    tests/test_schema.py      - Tests for wfc_composer/data/schema.py
"""
