"""HypeMeter request handlers used by app.py."""
