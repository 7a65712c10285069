# ittools/__main__.py
"""
Entry point for `python -m ittools`; delegates to the Typer CLI.
"""
from ittools.cli import app

if __name__ == "__main__":
    app()
