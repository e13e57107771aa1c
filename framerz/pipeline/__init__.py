"""
Session pipeline: initialization, render loop and the top-level error boundary.
"""

from .session import ARSession, initialize, run_app
