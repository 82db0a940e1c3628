"""
githelper - convenience commands layered on top of git.

Publish and clone repositories, generate commit messages with an AI model,
render commit history, and get notified when a remote has new commits.
"""

__version__ = "1.0.0"
__author__ = "githelper Team"
__description__ = "Git helper with AI commit messages and remote sync notifications"


def main():
    """Console entry point."""
    from .cli import app
    app()


__all__ = ["main"]
