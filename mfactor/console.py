"""Console output utilities for mfactor."""

from rich import print as rprint
from rich.console import Console
from rich.table import Table

console = Console()
print = rprint

__all__ = ['console', 'print', 'Table']
