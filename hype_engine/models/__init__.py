"""HypeMeter response shapes."""
