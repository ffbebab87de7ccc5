"""Pytest configuration — adds src/ and the shared fakes to sys.path for test discovery."""

import os
import sys

# Add src/ to Python path so tests can import from drive_indexer
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))
# Make tests/fakes.py importable from nested test directories
sys.path.insert(0, os.path.dirname(__file__))
