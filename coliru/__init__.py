"""coliru: a minimal, flexible dotfile installer.

Core design goals:
- Declarative manifest of steps, each gated by tag rules
- Same manifest installs locally or over SSH
- Dry runs that touch nothing
- One failing file never stops the rest of the install
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
