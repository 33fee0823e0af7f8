"""
Vercel serverless function entrypoint for the be-fees API.
"""
import sys
import os

possible_paths = [
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"),
    "/var/task/src",
]

for path in possible_paths:
    if path not in sys.path and os.path.exists(path):
        sys.path.insert(0, path)

from be_fees.api.server import app  # noqa: E402,F401
