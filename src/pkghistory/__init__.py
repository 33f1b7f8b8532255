"""Package History Tool.

Replays the git history of a dependency manifest (package.json,
composer.json) and reports every package that was added, updated or
removed, commit by commit.
"""

__version__ = "1.0.0"
__author__ = "Package History Team"
__email__ = "dev@pkghistory.dev"

__all__ = []
