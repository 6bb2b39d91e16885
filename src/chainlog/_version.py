"""
Single source of the package version.

Read by hatchling at build time (``[tool.hatch.version]``) and re-exported as
``chainlog.__version__``.
"""

__version__ = "0.1.0"
