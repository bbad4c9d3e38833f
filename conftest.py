"""
Root conftest -- puts the project root on sys.path so tests can import
the signalbt package without installing it.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(__file__))
