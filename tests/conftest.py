"""
Pytest configuration: make the textile_labels package importable.
"""

# Standard Library
import pathlib
import sys

#============================================


def _add_repo_root() -> None:
	"""
	Put the repository root at the front of sys.path.
	"""
	repo_root = str(pathlib.Path(__file__).resolve().parent.parent)
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_add_repo_root()
