"""capgraph.tools package

Command entrypoints, run as `python -m capgraph.tools.<name>`.

Keep this package's __init__ free of eager imports so `python -m` stays
side-effect free.
"""

__all__: list[str] = []
