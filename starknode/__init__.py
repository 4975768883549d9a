"""Configuration, node status, process and host statistics tools for local Ethereum and Starknet nodes."""

__version__ = "0.1.0"