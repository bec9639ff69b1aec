"""
Completion calendar package.

Core logic (month grid, day bucketing, template application, stores) lives in
plain modules; ``main`` exposes it as a local FastAPI app for a UI shell.
"""
