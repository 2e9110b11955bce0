#!/usr/bin/env python3
"""
Main entry point for the Twitch chat companion
"""

from src.main import run

if __name__ == "__main__":
    run()
