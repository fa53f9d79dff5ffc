"""Range-configuration compiler subpackage.

This package contains focused modules used by the public facade
``rangegen.range_builder``. External code should continue to import
from ``rangegen.range_builder`` to maintain API stability.
"""

from __future__ import annotations
