#!/usr/bin/env python3
"""
Main execution module for the history migration tool
"""

from history_migrator.cli.commands import main

if __name__ == "__main__":
    main()
