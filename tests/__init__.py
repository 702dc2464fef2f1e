"""Test package for Sanctuary.

Structure:
    - unit/: Individual function and class tests
    - integration/: HTTP workflows against the FastAPI app

LLM collaborators are replaced by fakes from conftest.py; PDFs are generated
with pypdf. Leverages pytest with pytest-check for soft assertions.
"""
