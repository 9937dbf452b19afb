"""
Entry point for running rpcrouter as a module: python -m rpcrouter
"""

from rpcrouter.cli.commands import app

if __name__ == "__main__":
    app()
