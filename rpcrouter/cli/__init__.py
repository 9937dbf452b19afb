"""CLI module for rpcrouter."""
