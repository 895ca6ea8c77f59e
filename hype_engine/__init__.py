"""
HypeMeter Engine
──────────────────
Settings, error taxonomy, caching, and the fan-out plumbing shared by
all upstream sources.
"""
